"""
Main CLI interface for the database administration layer
"""

import sys
from typing import List, Sequence, Any

from ..config import get_settings
from ..database import ResultSet, SessionManager
from ..database.values import to_json_value
from ..errors import VindError

MAX_CELL_WIDTH = 40


def format_table(columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> str:
    """Render columns and rows as a plain text grid"""
    def cell(value) -> str:
        text = 'NULL' if value is None else str(to_json_value(value))
        return text if len(text) <= MAX_CELL_WIDTH else text[:MAX_CELL_WIDTH - 3] + '...'

    body = [[cell(v) for v in row] for row in rows]
    widths = [len(c) for c in columns]
    for row in body:
        for i, text in enumerate(row):
            widths[i] = max(widths[i], len(text))

    lines = [
        ' | '.join(c.ljust(w) for c, w in zip(columns, widths)),
        '-+-'.join('-' * w for w in widths),
    ]
    for row in body:
        lines.append(' | '.join(t.ljust(w) for t, w in zip(row, widths)))
    return '\n'.join(lines)


def print_result(result: ResultSet):
    if not result.columns:
        affected = result.affected_rows
        print("Query executed successfully" + (f" ({affected} rows affected)" if affected is not None else ""))
        return
    print(format_table(result.columns, result.rows))
    print(f"({result.row_count} rows)")


def handle_command(manager: SessionManager, user_input: str) -> bool:
    """Run one command; False when the user asked to exit"""
    adapter = manager.get()
    parts: List[str] = user_input.split()
    command = parts[0].upper()

    if command == 'EXIT':
        return False

    elif command == 'SCHEMAS':
        for name in adapter.list_schemas():
            print(f"  - {name}")

    elif command == 'TABLES':
        schema = parts[1] if len(parts) > 1 else None
        for name in adapter.list_tables(schema):
            print(f"  - {name}")

    elif command == 'COLUMNS' and len(parts) > 1:
        schema = parts[2] if len(parts) > 2 else None
        columns = adapter.list_columns(schema, parts[1])
        print(format_table(
            ['name', 'type', 'nullable', 'default', 'unique', 'foreign_key'],
            [[c.name, c.type, c.nullable, c.default, c.is_unique, c.foreign_key] for c in columns]
        ))

    elif command == 'CONSTRAINTS' and len(parts) > 1:
        schema = parts[2] if len(parts) > 2 else None
        constraints = adapter.list_constraints(schema, parts[1])
        print(format_table(
            ['name', 'type', 'definition'],
            [[c.constraint_name, c.constraint_type, c.definition] for c in constraints]
        ))

    else:
        print_result(adapter.execute_query(user_input))

    return True


def main(argv: Sequence[str] = None):
    """Interactive prompt against one database connection"""
    argv = sys.argv[1:] if argv is None else argv
    settings = get_settings()

    dsn = argv[0] if argv else settings.dsn
    if not dsn:
        dsn = input("Connection string: ").strip()

    manager = SessionManager({
        'default_schema': settings.default_schema,
        'connect_timeout': settings.connect_timeout,
        'statement_timeout_ms': settings.statement_timeout_ms
    })

    try:
        manager.connect(dsn)
    except VindError as e:
        print(f"Failed to connect: {e.message}")
        return 1

    print("Connected. Commands: SCHEMAS, TABLES [schema], COLUMNS <table> [schema],")
    print("CONSTRAINTS <table> [schema], EXIT, or any SQL statement.")

    try:
        while True:
            try:
                user_input = input("\nvind> ").strip()
            except (KeyboardInterrupt, EOFError):
                print()
                break

            if not user_input:
                continue

            try:
                if not handle_command(manager, user_input):
                    break
            except VindError as e:
                print(f"Error: {e.message}")
    finally:
        manager.close_all()

    return 0


if __name__ == "__main__":
    sys.exit(main())
