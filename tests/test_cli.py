from vind.cli.main_cli import format_table, handle_command
from vind.database.sessions import SessionManager


def test_format_table_renders_null_and_truncates():
    text = format_table(["id", "note"], [(1, None), (2, "x" * 60)])
    lines = text.splitlines()

    assert lines[0].startswith("id")
    assert "NULL" in lines[2]
    assert lines[3].endswith("...")


def test_handle_command_runs_sql_and_exit(fake_connect, capsys):
    manager = SessionManager()
    manager.connect("postgresql://localhost/app")
    connection = fake_connect[0]
    connection.queue(["n"], [(1,)])

    assert handle_command(manager, "SELECT 1 AS n") is True
    assert "(1 rows)" in capsys.readouterr().out

    connection.queue(["table_name"], [("users",)])
    handle_command(manager, "TABLES sales")
    assert connection.executed[-1][1] == ("sales",)
    assert "users" in capsys.readouterr().out

    assert handle_command(manager, "exit") is False
