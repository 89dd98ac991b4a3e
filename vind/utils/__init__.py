"""
Utility functions and helper classes
"""

from .identifiers import is_valid_identifier, quote_identifier
from .logger import setup_logger

__all__ = [
    'is_valid_identifier',
    'quote_identifier',
    'setup_logger'
]
