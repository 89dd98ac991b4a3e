"""
Database adapters, query building and result models
"""

from .models import (
    AlterOperation,
    ColumnDefinition,
    ColumnInfo,
    ConstraintInfo,
    ConstraintSpec,
    Filter,
    ResultSet,
    TableDataQuery,
)
from .adapters import DatabaseAdapter, PostgreSQLAdapter
from .factory import DatabaseFactory
from .sessions import SessionManager

__all__ = [
    'AlterOperation',
    'ColumnDefinition',
    'ColumnInfo',
    'ConstraintInfo',
    'ConstraintSpec',
    'Filter',
    'ResultSet',
    'TableDataQuery',
    'DatabaseAdapter',
    'PostgreSQLAdapter',
    'DatabaseFactory',
    'SessionManager'
]
