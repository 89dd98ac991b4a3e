"""
Database adapters for different database types
"""

import psycopg2
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Dict, List, Optional, Any, Mapping, Sequence

from ..errors import (
    DatabaseConnectionError,
    DatabaseEngineError,
    NotConnectedError,
    ValidationError,
)
from ..utils.logger import setup_logger
from . import query_builder as qb
from .models import (
    AlterOperation,
    ColumnDefinition,
    ColumnInfo,
    ConstraintInfo,
    ConstraintSpec,
    ResultSet,
    TableDataQuery,
)
from .values import normalize_value


def is_select_statement(sql: str) -> bool:
    """Lexical read/write routing: True when the text starts with SELECT

    WITH ... SELECT and other statements that return rows without a leading
    SELECT are routed as writes; callers can override with returns_rows.
    """
    return sql.lstrip().upper().startswith('SELECT')


class DatabaseAdapter(ABC):
    """Abstract base class for database adapters"""

    @abstractmethod
    def connect(self, dsn: str) -> Any:
        """Open the connection and verify it answers"""
        pass

    @abstractmethod
    def disconnect(self):
        """Close the connection; no-op when already closed"""
        pass

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        pass

    @abstractmethod
    def list_schemas(self) -> List[str]:
        pass

    @abstractmethod
    def list_tables(self, schema: Optional[str] = None) -> List[str]:
        pass

    @abstractmethod
    def list_columns(self, schema: Optional[str], table: str) -> List[ColumnInfo]:
        pass

    @abstractmethod
    def execute_query(self, sql: str, returns_rows: Optional[bool] = None) -> ResultSet:
        """Run arbitrary SQL text"""
        pass

    @abstractmethod
    def get_table_data(self, query: TableDataQuery) -> ResultSet:
        pass

    @abstractmethod
    def insert_record(self, schema: Optional[str], table: str, data: Mapping[str, Any]) -> int:
        pass

    @abstractmethod
    def update_record(self, schema: Optional[str], table: str, data: Mapping[str, Any],
                      where: Mapping[str, Any]) -> int:
        pass

    @abstractmethod
    def delete_record(self, schema: Optional[str], table: str, conditions: Mapping[str, Any]) -> int:
        pass

    @abstractmethod
    def create_table(self, schema: Optional[str], table: str, columns: Sequence[ColumnDefinition]):
        pass

    @abstractmethod
    def alter_table(self, schema: Optional[str], table: str, operations: Sequence[AlterOperation]):
        pass

    @abstractmethod
    def drop_table(self, schema: Optional[str], table: str, cascade: bool = False):
        pass

    @abstractmethod
    def add_constraint(self, spec: ConstraintSpec):
        pass

    @abstractmethod
    def drop_constraint(self, schema: Optional[str], table: str, constraint_name: str,
                        cascade: bool = False):
        pass

    @abstractmethod
    def list_constraints(self, schema: Optional[str], table: str) -> List[ConstraintInfo]:
        pass


class PostgreSQLAdapter(DatabaseAdapter):
    """PostgreSQL database adapter"""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.connection = None
        self.default_schema = self.config.get('default_schema') or qb.DEFAULT_SCHEMA
        self.logger = setup_logger("vind.postgres")

    def connect(self, dsn: str) -> Any:
        """Connect to PostgreSQL and run a liveness probe"""
        if not dsn:
            raise ValidationError("connection string is required")

        options = {}
        if self.config.get('connect_timeout'):
            options['connect_timeout'] = int(self.config['connect_timeout'])
        if self.config.get('statement_timeout_ms'):
            options['options'] = f"-c statement_timeout={int(self.config['statement_timeout_ms'])}"

        try:
            connection = psycopg2.connect(dsn, **options)
        except psycopg2.Error as e:
            raise DatabaseConnectionError.from_driver_error(e) from e

        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
                cursor.fetchone()
            connection.commit()
        except psycopg2.Error as e:
            connection.close()
            raise DatabaseConnectionError.from_driver_error(e) from e

        self.connection = connection
        return connection

    def disconnect(self):
        if self.connection is None:
            return
        connection, self.connection = self.connection, None
        if not connection.closed:
            connection.close()

    @property
    def is_connected(self) -> bool:
        return self.connection is not None and not self.connection.closed

    def _require_connection(self):
        if not self.is_connected:
            raise NotConnectedError()
        return self.connection

    def _run(self, sql: str, args=None, fetch: bool = False) -> ResultSet:
        """Execute one statement and scan its result, committing on success"""
        connection = self._require_connection()
        self.logger.debug(f"Executing SQL: {sql.strip()}")

        try:
            with connection.cursor() as cursor:
                cursor.execute(sql, args or None)

                if fetch and cursor.description is not None:
                    columns = [desc[0] for desc in cursor.description]
                    rows = [
                        tuple(normalize_value(value) for value in row)
                        for row in cursor.fetchall()
                    ]
                    result = ResultSet.from_rows(columns, rows)
                else:
                    affected = cursor.rowcount if cursor.rowcount >= 0 else None
                    result = ResultSet(affected_rows=affected)

            connection.commit()
            return result

        except psycopg2.Error as e:
            if not connection.closed:
                connection.rollback()
            error = DatabaseEngineError.from_driver_error(e)
            self.logger.error(f"Statement failed ({error.pgcode}): {error.message}")
            raise error from e

    def _run_built(self, built: qb.BuiltQuery, fetch: bool = False) -> ResultSet:
        return self._run(built.sql, built.args, fetch=fetch)

    def _schema(self, schema: Optional[str]) -> str:
        return schema or self.default_schema

    # -- introspection -----------------------------------------------------

    def list_schemas(self) -> List[str]:
        result = self._run_built(qb.build_list_schemas(), fetch=True)
        return [row[0] for row in result.rows]

    def list_tables(self, schema: Optional[str] = None) -> List[str]:
        self._require_connection()
        result = self._run_built(qb.build_list_tables(self._schema(schema)), fetch=True)
        return [row[0] for row in result.rows]

    def list_columns(self, schema: Optional[str], table: str) -> List[ColumnInfo]:
        self._require_connection()
        built = qb.build_list_columns(self._schema(schema), table)
        result = self._run_built(built, fetch=True)

        columns = []
        for name, data_type, is_nullable, default, is_unique, foreign_key in result.rows:
            columns.append(ColumnInfo(
                name=name,
                type=data_type,
                nullable=is_nullable == 'YES',
                default=default,
                is_unique=bool(is_unique),
                foreign_key=foreign_key
            ))
        return columns

    def list_constraints(self, schema: Optional[str], table: str) -> List[ConstraintInfo]:
        self._require_connection()
        built = qb.build_list_constraints(self._schema(schema), table)
        result = self._run_built(built, fetch=True)
        return [
            ConstraintInfo(
                constraint_name=name,
                constraint_type=constraint_type,
                table_name=table_name,
                definition=definition
            )
            for name, constraint_type, table_name, definition in result.rows
        ]

    # -- queries and records -----------------------------------------------

    def execute_query(self, sql: str, returns_rows: Optional[bool] = None) -> ResultSet:
        """Execute arbitrary SQL; reads return rows, writes an affected count"""
        self._require_connection()
        if not sql or not sql.strip():
            raise ValidationError("query is empty")

        if returns_rows is None:
            returns_rows = is_select_statement(sql)
        return self._run(sql, fetch=returns_rows)

    def get_table_data(self, query: TableDataQuery) -> ResultSet:
        self._require_connection()
        built = qb.build_select(replace(query, schema=self._schema(query.schema)))
        if built.ignored_filters:
            ignored = ', '.join(f"{f.column} {f.operator}" for f in built.ignored_filters)
            self.logger.warning(f"Ignoring filters with unsupported operators: {ignored}")

        result = self._run_built(built, fetch=True)
        return replace(result, ignored_filters=built.ignored_filters)

    def insert_record(self, schema: Optional[str], table: str, data: Mapping[str, Any]) -> int:
        self._require_connection()
        result = self._run_built(qb.build_insert(self._schema(schema), table, data))
        return result.affected_rows or 0

    def update_record(self, schema: Optional[str], table: str, data: Mapping[str, Any],
                      where: Mapping[str, Any]) -> int:
        self._require_connection()
        result = self._run_built(qb.build_update(self._schema(schema), table, data, where))
        return result.affected_rows or 0

    def delete_record(self, schema: Optional[str], table: str, conditions: Mapping[str, Any]) -> int:
        self._require_connection()
        result = self._run_built(qb.build_delete(self._schema(schema), table, conditions))
        return result.affected_rows or 0

    # -- DDL ---------------------------------------------------------------

    def create_table(self, schema: Optional[str], table: str, columns: Sequence[ColumnDefinition]):
        self._require_connection()
        self._run_built(qb.build_create_table(self._schema(schema), table, columns))
        self.logger.info(f"Created table {self._schema(schema)}.{table}")

    def alter_table(self, schema: Optional[str], table: str, operations: Sequence[AlterOperation]):
        self._require_connection()
        self._run_built(qb.build_alter_table(self._schema(schema), table, operations))
        self.logger.info(f"Altered table {self._schema(schema)}.{table} ({len(operations)} operations)")

    def drop_table(self, schema: Optional[str], table: str, cascade: bool = False):
        self._require_connection()
        self._run_built(qb.build_drop_table(self._schema(schema), table, cascade))
        self.logger.info(f"Dropped table {self._schema(schema)}.{table}{' (cascade)' if cascade else ''}")

    def add_constraint(self, spec: ConstraintSpec):
        self._require_connection()
        self._run_built(qb.build_add_constraint(replace(spec, schema=self._schema(spec.schema))))

    def drop_constraint(self, schema: Optional[str], table: str, constraint_name: str,
                        cascade: bool = False):
        self._require_connection()
        self._run_built(qb.build_drop_constraint(self._schema(schema), table, constraint_name, cascade))
