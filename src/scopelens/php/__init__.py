"""PHP source introspection.

This module tokenizes PHP source, rebuilds its block structure and indexes
its declarations so names can be resolved without executing the code.
"""

from scopelens.php.doc_comment import DocComment, TypeDocumentation, TypeProperties
from scopelens.php.evaluator import ConstantEvaluator
from scopelens.php.registry import SymbolRegistry
from scopelens.php.resolver import PhpNameResolver
from scopelens.php.scanner import PhpDeclarationScanner
from scopelens.php.scope import Scope
from scopelens.php.source_file import SourceFile
from scopelens.php.symbols import Declaration, DeclarationIndex
from scopelens.php.tokenizer import PhpTokenizer
from scopelens.php.tokens import Token, TokenKind
from scopelens.php.visitor import ScopeEvent, TokenScopeVisitor

__all__ = [
    "ConstantEvaluator",
    "Declaration",
    "DeclarationIndex",
    "DocComment",
    "PhpDeclarationScanner",
    "PhpNameResolver",
    "PhpTokenizer",
    "Scope",
    "ScopeEvent",
    "SourceFile",
    "SymbolRegistry",
    "Token",
    "TokenKind",
    "TokenScopeVisitor",
    "TypeDocumentation",
    "TypeProperties",
]
