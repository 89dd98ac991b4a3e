"""
Data models for query requests, schema objects and tabular results
"""

from dataclasses import dataclass, field, asdict
from typing import List, Dict, Any, Optional, Tuple, Sequence

from .values import to_json_value


@dataclass(frozen=True)
class Filter:
    """A single column comparison for table-data reads"""
    column: str
    operator: str
    value: Any

    @classmethod
    def parse(cls, raw: str) -> Optional['Filter']:
        """Parse the 'column:operator:value' wire form, None if malformed"""
        parts = raw.split(':', 2)
        if len(parts) != 3:
            return None
        return cls(column=parts[0], operator=parts[1], value=parts[2])

    def to_dict(self) -> Dict[str, Any]:
        return {'column': self.column, 'operator': self.operator, 'value': self.value}


@dataclass
class TableDataQuery:
    """Paged, filtered read of one table"""
    table: str
    schema: str = ""
    limit: Any = 50
    offset: Any = 0
    order_by: Optional[str] = None
    filters: List[Filter] = field(default_factory=list)


@dataclass
class ColumnDefinition:
    """Column clause for CREATE TABLE"""
    name: str
    type: str
    primary_key: bool = False
    not_null: bool = False
    default: Optional[str] = None


@dataclass
class AlterOperation:
    """One action of an ALTER TABLE request

    action is one of add_column, drop_column, rename_column, alter_column.
    For alter_column, type, not_null and default are each optional and
    produce their own clause when present; not_null=False drops the
    constraint, None leaves it alone.
    """
    action: str
    column_name: str = ""
    type: Optional[str] = None
    new_name: Optional[str] = None
    not_null: Optional[bool] = None
    default: Optional[str] = None


@dataclass
class ConstraintSpec:
    """Constraint to add to an existing table"""
    table_name: str
    constraint_name: str
    type: str
    columns: List[str] = field(default_factory=list)
    ref_table: Optional[str] = None
    ref_columns: List[str] = field(default_factory=list)
    on_delete: Optional[str] = None
    on_update: Optional[str] = None
    check_expr: Optional[str] = None
    schema: str = ""


@dataclass
class ConstraintInfo:
    """Constraint as reported by the catalog"""
    constraint_name: str
    constraint_type: str
    table_name: str
    definition: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ColumnInfo:
    """Introspected column, one denormalized row per column"""
    name: str
    type: str
    nullable: bool
    default: Optional[str] = None
    is_unique: bool = False
    foreign_key: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ResultSet:
    """Column names plus rows, the shape returned by every read"""
    columns: Tuple[str, ...] = ()
    rows: Tuple[Tuple[Any, ...], ...] = ()
    affected_rows: Optional[int] = None
    ignored_filters: Tuple[Filter, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'columns', tuple(self.columns))
        object.__setattr__(self, 'rows', tuple(tuple(row) for row in self.rows))
        object.__setattr__(self, 'ignored_filters', tuple(self.ignored_filters))

        width = len(self.columns)
        for index, row in enumerate(self.rows):
            if len(row) != width:
                raise ValueError(
                    f"row {index} has {len(row)} values, expected {width}"
                )

    @classmethod
    def from_rows(cls, columns: Sequence[str], rows: Sequence[Sequence[Any]],
                  **kwargs) -> 'ResultSet':
        return cls(columns=tuple(columns), rows=tuple(rows), **kwargs)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready form"""
        return {
            'columns': list(self.columns),
            'rows': [[to_json_value(v) for v in row] for row in self.rows],
        }
