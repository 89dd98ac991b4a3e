"""
Identifier validation and quoting for SQL text assembly
"""

import re

from ..errors import InvalidIdentifierError


IDENTIFIER_PATTERN = re.compile(r'[A-Za-z_][A-Za-z0-9_]*')


def is_valid_identifier(name) -> bool:
    """Check whether a schema/table/column name is safe to embed in SQL"""
    if not isinstance(name, str):
        return False
    return IDENTIFIER_PATTERN.fullmatch(name) is not None


def quote_identifier(name, kind: str = "identifier") -> str:
    """Validate and double-quote an identifier"""
    if not is_valid_identifier(name):
        raise InvalidIdentifierError(kind, name)
    return f'"{name}"'
