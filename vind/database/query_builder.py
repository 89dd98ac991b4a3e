"""
Parameterized SQL assembly for CRUD, DDL and catalog queries

Every builder returns a BuiltQuery and never touches the network. Values are
always bound through psycopg2 %s placeholders; identifiers cannot be bound, so
they go through the allow-list in utils.identifiers and are double-quoted.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ..errors import ValidationError, UnsupportedOperationError
from ..utils.identifiers import is_valid_identifier, quote_identifier
from .models import (
    AlterOperation,
    ColumnDefinition,
    ConstraintSpec,
    Filter,
    TableDataQuery,
)

DEFAULT_SCHEMA = "public"

SUPPORTED_OPERATORS = ('=', '>', '<', '>=', '<=', 'LIKE')

ALTER_ACTIONS = ('add_column', 'drop_column', 'rename_column', 'alter_column')

CONSTRAINT_TYPES = ('PRIMARY KEY', 'FOREIGN KEY', 'UNIQUE', 'CHECK')

REFERENTIAL_ACTIONS = ('NO ACTION', 'RESTRICT', 'CASCADE', 'SET NULL', 'SET DEFAULT')


@dataclass(frozen=True)
class BuiltQuery:
    """SQL text plus the arguments bound to its placeholders"""
    sql: str
    args: Union[Tuple[Any, ...], Dict[str, Any]] = ()
    ignored_filters: Tuple[Filter, ...] = ()


def qualified_name(schema: Optional[str], table: str) -> str:
    """Quoted "schema"."table" with the default schema filled in"""
    return f'{quote_identifier(schema or DEFAULT_SCHEMA, "schema")}.{quote_identifier(table, "table")}'


def _parse_non_negative_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"invalid {name}")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        number = int(value.strip())
    else:
        raise ValidationError(f"invalid {name}")
    if number < 0:
        raise ValidationError(f"invalid {name}")
    return number


def _require_table(table: str):
    if not table:
        raise ValidationError("table name is required")


# ---------------------------------------------------------------------------
# Data manipulation
# ---------------------------------------------------------------------------

def build_select(query: TableDataQuery) -> BuiltQuery:
    """SELECT * with filters, optional ORDER BY and LIMIT/OFFSET"""
    _require_table(query.table)
    source = qualified_name(query.schema, query.table)
    limit = _parse_non_negative_int(query.limit, "limit")
    offset = _parse_non_negative_int(query.offset, "offset")

    conditions = []
    args: List[Any] = []
    ignored = []

    for f in query.filters:
        operator = str(f.operator).strip().upper()
        if operator not in SUPPORTED_OPERATORS:
            ignored.append(f)
            continue
        conditions.append(f'{quote_identifier(f.column, "column")} {operator} %s')
        args.append(f.value)

    sql = f'SELECT * FROM {source}'
    if conditions:
        sql += ' WHERE ' + ' AND '.join(conditions)

    if query.order_by and is_valid_identifier(query.order_by):
        sql += f' ORDER BY {quote_identifier(query.order_by)}'

    sql += ' LIMIT %s OFFSET %s'
    args.extend([limit, offset])

    return BuiltQuery(sql=sql, args=tuple(args), ignored_filters=tuple(ignored))


def build_insert(schema: str, table: str, data: Mapping[str, Any]) -> BuiltQuery:
    """INSERT of one row from a column -> value mapping"""
    if not data:
        raise ValidationError("no data to insert")
    _require_table(table)
    target = qualified_name(schema, table)

    columns = []
    args = []
    for column, value in data.items():
        columns.append(quote_identifier(column, "column"))
        args.append(value)

    placeholders = ', '.join(['%s'] * len(columns))
    sql = f'INSERT INTO {target} ({", ".join(columns)}) VALUES ({placeholders})'
    return BuiltQuery(sql=sql, args=tuple(args))


def build_update(schema: str, table: str, data: Mapping[str, Any],
                 where: Mapping[str, Any]) -> BuiltQuery:
    """UPDATE with a mandatory equality WHERE map"""
    if not data:
        raise ValidationError("no fields to update")
    if not where:
        raise ValidationError("missing WHERE clause, dangerous update prevented")
    _require_table(table)
    target = qualified_name(schema, table)

    set_clauses = []
    where_clauses = []
    args = []

    for column, value in data.items():
        set_clauses.append(f'{quote_identifier(column, "column")} = %s')
        args.append(value)

    for column, value in where.items():
        where_clauses.append(f'{quote_identifier(column, "column")} = %s')
        args.append(value)

    sql = f'UPDATE {target} SET {", ".join(set_clauses)} WHERE {" AND ".join(where_clauses)}'
    return BuiltQuery(sql=sql, args=tuple(args))


def build_delete(schema: str, table: str, conditions: Mapping[str, Any]) -> BuiltQuery:
    """DELETE restricted by a non-empty equality map"""
    if not table or not conditions:
        raise ValidationError("table name and conditions are required")
    target = qualified_name(schema, table)

    clauses = []
    args = []
    for column, value in conditions.items():
        clauses.append(f'{quote_identifier(column, "column")} = %s')
        args.append(value)

    sql = f'DELETE FROM {target} WHERE {" AND ".join(clauses)}'
    return BuiltQuery(sql=sql, args=tuple(args))


# ---------------------------------------------------------------------------
# Table DDL
# ---------------------------------------------------------------------------

def build_create_table(schema: str, table: str,
                       columns: Sequence[ColumnDefinition]) -> BuiltQuery:
    """CREATE TABLE with one aggregated PRIMARY KEY clause"""
    _require_table(table)
    if not columns:
        raise ValidationError("invalid table definition: no columns")
    target = qualified_name(schema, table)

    column_defs = []
    pk_columns = []

    for col in columns:
        if not col.type or not col.type.strip():
            raise ValidationError(f"column {col.name!r} requires a type")
        parts = [quote_identifier(col.name, "column"), col.type.strip()]
        if col.not_null:
            parts.append('NOT NULL')
        if col.default:
            parts.append(f'DEFAULT {col.default}')
        column_defs.append(' '.join(parts))

        if col.primary_key:
            pk_columns.append(quote_identifier(col.name, "column"))

    if pk_columns:
        column_defs.append(f'PRIMARY KEY ({", ".join(pk_columns)})')

    return BuiltQuery(sql=f'CREATE TABLE {target} ({", ".join(column_defs)})')


def _alter_clauses(op: AlterOperation) -> List[str]:
    action = (op.action or '').strip().lower()
    if action not in ALTER_ACTIONS:
        raise UnsupportedOperationError(f"unsupported action: {op.action}")

    if not op.column_name:
        raise ValidationError(f"{action} requires column_name")
    column = quote_identifier(op.column_name, "column")

    if action == 'add_column':
        if not op.type:
            raise ValidationError("add_column requires column_name and type")
        return [f'ADD COLUMN {column} {op.type}']

    if action == 'drop_column':
        return [f'DROP COLUMN {column}']

    if action == 'rename_column':
        if not op.new_name:
            raise ValidationError("rename_column requires column_name and new_name")
        return [f'RENAME COLUMN {column} TO {quote_identifier(op.new_name, "column")}']

    clauses = []
    if op.type:
        clauses.append(f'ALTER COLUMN {column} TYPE {op.type}')
    if op.not_null is not None:
        clauses.append(f'ALTER COLUMN {column} {"SET" if op.not_null else "DROP"} NOT NULL')
    if op.default:
        clauses.append(f'ALTER COLUMN {column} SET DEFAULT {op.default}')
    if not clauses:
        raise ValidationError("alter_column requires at least one of type, not_null, default")
    return clauses


def build_alter_table(schema: str, table: str,
                      operations: Sequence[AlterOperation]) -> BuiltQuery:
    """Single ALTER TABLE carrying every operation's clauses in order"""
    _require_table(table)
    if not operations:
        raise ValidationError("invalid alter table request: no operations")
    target = qualified_name(schema, table)

    clauses = []
    for op in operations:
        clauses.extend(_alter_clauses(op))

    return BuiltQuery(sql=f'ALTER TABLE {target} {", ".join(clauses)}')


def build_drop_table(schema: str, table: str, cascade: bool = False) -> BuiltQuery:
    _require_table(table)
    sql = f'DROP TABLE {qualified_name(schema, table)}'
    if cascade:
        sql += ' CASCADE'
    return BuiltQuery(sql=sql)


# ---------------------------------------------------------------------------
# Constraints
# ---------------------------------------------------------------------------

def normalize_constraint_type(raw: str) -> str:
    """'foreign_key', 'Foreign Key' -> 'FOREIGN KEY'"""
    normalized = ' '.join((raw or '').replace('_', ' ').upper().split())
    if normalized not in CONSTRAINT_TYPES:
        raise UnsupportedOperationError(f"unsupported constraint type: {raw}")
    return normalized


def _referential_action(value: str, clause: str) -> str:
    action = ' '.join(value.upper().split())
    if action not in REFERENTIAL_ACTIONS:
        raise ValidationError(f"invalid {clause} action: {value}")
    return f' {clause} {action}'


def _column_list(columns: Sequence[str]) -> str:
    return ', '.join(quote_identifier(c, "column") for c in columns)


def build_add_constraint(spec: ConstraintSpec) -> BuiltQuery:
    """ALTER TABLE ... ADD CONSTRAINT with per-type field checks"""
    _require_table(spec.table_name)
    constraint_type = normalize_constraint_type(spec.type)
    target = qualified_name(spec.schema, spec.table_name)
    name = quote_identifier(spec.constraint_name, "constraint")

    if constraint_type in ('PRIMARY KEY', 'UNIQUE'):
        if not spec.columns:
            raise ValidationError(f"{constraint_type} constraint requires columns")
        body = f'{constraint_type} ({_column_list(spec.columns)})'

    elif constraint_type == 'FOREIGN KEY':
        if not spec.columns or not spec.ref_table or not spec.ref_columns:
            raise ValidationError("FOREIGN KEY constraint requires columns, ref_table and ref_columns")
        if len(spec.columns) != len(spec.ref_columns):
            raise ValidationError("FOREIGN KEY columns and ref_columns must have the same length")
        body = (
            f'FOREIGN KEY ({_column_list(spec.columns)}) '
            f'REFERENCES {qualified_name(spec.schema, spec.ref_table)} ({_column_list(spec.ref_columns)})'
        )
        if spec.on_delete:
            body += _referential_action(spec.on_delete, 'ON DELETE')
        if spec.on_update:
            body += _referential_action(spec.on_update, 'ON UPDATE')

    else:
        if not spec.check_expr or not spec.check_expr.strip():
            raise ValidationError("CHECK constraint requires check_expr")
        body = f'CHECK ({spec.check_expr.strip()})'

    return BuiltQuery(sql=f'ALTER TABLE {target} ADD CONSTRAINT {name} {body}')


def build_drop_constraint(schema: str, table: str, constraint_name: str,
                          cascade: bool = False) -> BuiltQuery:
    _require_table(table)
    if not constraint_name:
        raise ValidationError("constraint name is required")
    sql = (
        f'ALTER TABLE {qualified_name(schema, table)} '
        f'DROP CONSTRAINT {quote_identifier(constraint_name, "constraint")}'
    )
    if cascade:
        sql += ' CASCADE'
    return BuiltQuery(sql=sql)


# ---------------------------------------------------------------------------
# Catalog introspection
# ---------------------------------------------------------------------------

LIST_SCHEMAS_SQL = "SELECT schema_name FROM information_schema.schemata ORDER BY schema_name"

LIST_TABLES_SQL = """
    SELECT table_name FROM information_schema.tables
    WHERE table_schema = %s
    ORDER BY table_name
"""

LIST_COLUMNS_SQL = """
    SELECT
        c.column_name,
        c.data_type,
        c.is_nullable,
        c.column_default,
        EXISTS (
            SELECT 1 FROM information_schema.table_constraints tc
            JOIN information_schema.constraint_column_usage ccu
                ON tc.constraint_name = ccu.constraint_name
                AND tc.constraint_schema = ccu.constraint_schema
            WHERE tc.constraint_type = 'UNIQUE'
                AND tc.table_schema = c.table_schema
                AND tc.table_name = c.table_name
                AND ccu.column_name = c.column_name
        ) AS is_unique,
        (
            SELECT pg_get_constraintdef(con.oid)
            FROM pg_constraint con
            JOIN pg_class rel ON rel.oid = con.conrelid
            JOIN pg_namespace nsp ON nsp.oid = rel.relnamespace
            JOIN pg_attribute att ON att.attrelid = rel.oid AND att.attnum = ANY(con.conkey)
            WHERE con.contype = 'f'
                AND nsp.nspname = %(schema)s
                AND rel.relname = %(table)s
                AND att.attname = c.column_name
            LIMIT 1
        ) AS foreign_key
    FROM information_schema.columns c
    WHERE c.table_schema = %(schema)s AND c.table_name = %(table)s
    ORDER BY c.ordinal_position
"""

LIST_CONSTRAINTS_SQL = """
    SELECT
        con.conname,
        CASE con.contype
            WHEN 'p' THEN 'PRIMARY KEY'
            WHEN 'f' THEN 'FOREIGN KEY'
            WHEN 'u' THEN 'UNIQUE'
            WHEN 'c' THEN 'CHECK'
            WHEN 'x' THEN 'EXCLUDE'
            ELSE con.contype::text
        END AS constraint_type,
        rel.relname,
        pg_get_constraintdef(con.oid)
    FROM pg_constraint con
    JOIN pg_class rel ON rel.oid = con.conrelid
    JOIN pg_namespace nsp ON nsp.oid = rel.relnamespace
    WHERE nsp.nspname = %s AND rel.relname = %s
    ORDER BY con.conname
"""


def build_list_schemas() -> BuiltQuery:
    return BuiltQuery(sql=LIST_SCHEMAS_SQL)


def build_list_tables(schema: Optional[str]) -> BuiltQuery:
    schema = schema or DEFAULT_SCHEMA
    quote_identifier(schema, "schema")
    return BuiltQuery(sql=LIST_TABLES_SQL, args=(schema,))


def build_list_columns(schema: Optional[str], table: str) -> BuiltQuery:
    _require_table(table)
    schema = schema or DEFAULT_SCHEMA
    qualified_name(schema, table)
    return BuiltQuery(sql=LIST_COLUMNS_SQL, args={'schema': schema, 'table': table})


def build_list_constraints(schema: Optional[str], table: str) -> BuiltQuery:
    _require_table(table)
    schema = schema or DEFAULT_SCHEMA
    qualified_name(schema, table)
    return BuiltQuery(sql=LIST_CONSTRAINTS_SQL, args=(schema, table))
