import pytest

from src.attendance_payroll.attendance_payroll.core.exceptions import NotFound
from src.attendance_payroll.attendance_payroll.core.result import capture
from src.attendance_payroll.attendance_payroll.database.bootstrap import _strip_create_db_and_use, iter_sql_statements


def test_capture_folds_domain_errors():
    def missing():
        raise NotFound("Employee 5 does not exist")

    outcome = capture(missing)

    assert not outcome.ok
    assert outcome.error_kind == "NotFound"
    assert outcome.to_dict() == {"ok": False, "error": "Employee 5 does not exist", "code": "NotFound"}


def test_capture_returns_value():
    assert capture(lambda x: x * 2, 21).to_dict() == {"ok": True, "value": 42}


def test_capture_lets_bugs_propagate():
    with pytest.raises(ZeroDivisionError):
        capture(lambda: 1 / 0)


def test_sql_split_respects_quotes():
    sql = "CREATE TABLE a (x VARCHAR(5) DEFAULT ';');\nINSERT INTO a VALUES ('it''s');\n"

    stmts = list(iter_sql_statements(sql))

    assert len(stmts) == 2
    assert stmts[0].endswith("DEFAULT ';')")


def test_schema_drops_database_selection():
    sql = "CREATE DATABASE IF NOT EXISTS foo;\nUSE foo;\nCREATE TABLE t (id INT);\n"

    assert list(iter_sql_statements(_strip_create_db_and_use(sql))) == ["CREATE TABLE t (id INT)"]
