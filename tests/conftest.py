"""Pytest fixtures for Oracle DDL extraction tests."""

import shutil
import tempfile
from unittest.mock import Mock

import pytest


class ScriptedCursor:
    """
    Cursor stand-in that answers each query from a script.

    The script is a list of (marker, rows) pairs. A query gets the rows of
    the first marker found in its SQL text; rows may be an exception to
    raise instead. Queries matching no marker return no rows.
    """

    def __init__(self, script=None):
        self.script = list(script or [])
        self.executed = []
        self._rows = []

    def execute(self, sql, params=None):
        self.executed.append((sql, params))
        self._rows = []
        for marker, rows in self.script:
            if marker in sql:
                if isinstance(rows, Exception):
                    raise rows
                self._rows = list(rows)
                break

    def fetchall(self):
        return self._rows

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def ran(self, marker):
        """True if any executed query contains the marker."""
        return any(marker in sql for sql, _ in self.executed)


@pytest.fixture
def scripted_cursor():
    """Factory for ScriptedCursor instances."""
    return ScriptedCursor


@pytest.fixture
def mock_cursor():
    """Create a mock Oracle cursor."""
    cursor = Mock()
    cursor.execute = Mock()
    cursor.fetchone = Mock(return_value=None)
    cursor.fetchall = Mock(return_value=[])
    cursor.description = []
    return cursor


@pytest.fixture
def mock_connection(mock_cursor):
    """Create a mock Oracle connection."""
    connection = Mock()
    connection.cursor = Mock(return_value=mock_cursor)
    connection.close = Mock()
    return connection


@pytest.fixture
def sample_table_ddl():
    """Table DDL as DBMS_METADATA returns it with CONSTRAINTS_AS_ALTER set."""
    return '''
  CREATE TABLE "HR"."EMPLOYEES"
   (    "EMPLOYEE_ID" NUMBER(6,0),
        "FIRST_NAME" VARCHAR2(20),
        "LAST_NAME" VARCHAR2(25) CONSTRAINT "EMP_LAST_NAME_NN" NOT NULL ENABLE,
        "SALARY" NUMBER(8,2)
   ) ;\r
\r
  ALTER TABLE "HR"."EMPLOYEES" ADD CONSTRAINT "EMP_SALARY_MIN" CHECK (salary > 0) ENABLE;
'''


@pytest.fixture
def sample_view_ddl():
    """View DDL whose last line is a comment, so it lacks a terminator."""
    return '''
  CREATE OR REPLACE FORCE EDITIONABLE VIEW "HR"."VW_EMPLOYEE_SUMMARY" ("EMPLOYEE_ID", "FULL_NAME") AS
  SELECT e.employee_id,
         e.first_name || ' ' || e.last_name
    FROM employees e
   WHERE e.salary > 0   -- active employees only
'''


@pytest.fixture
def sample_procedure_ddl():
    """Procedure DDL with padding in front of the block terminator."""
    return '''
  CREATE OR REPLACE EDITIONABLE PROCEDURE "HR"."UPDATE_SALARY"
(
    p_employee_id IN NUMBER,
    p_new_salary IN NUMBER
)
AS
BEGIN
    UPDATE employees
    SET salary = p_new_salary
    WHERE employee_id = p_employee_id;
END;

   \t
/
'''


@pytest.fixture
def sample_trigger_ddl():
    """Trigger DDL with an unqualified ON clause and an ALTER TRIGGER."""
    return '''
  CREATE OR REPLACE EDITIONABLE TRIGGER "HR"."TRG_EMP_AUDIT"
AFTER INSERT OR UPDATE ON EMPLOYEES
FOR EACH ROW
BEGIN
    INSERT INTO audit_log (table_name, changed_by, changed_date)
    VALUES ('EMPLOYEES', USER, SYSDATE);
END;

/
ALTER TRIGGER "HR"."TRG_EMP_AUDIT" ENABLE;
'''


@pytest.fixture
def sample_index_ddl():
    """Index DDL."""
    return '''
  CREATE INDEX "HR"."EMP_NAME_IX" ON "HR"."EMPLOYEES" ("LAST_NAME", "FIRST_NAME")
  '''


@pytest.fixture
def temp_output_dir():
    """Create a temporary output directory."""
    temp_dir = tempfile.mkdtemp(prefix='oradex_test_')
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def sample_config():
    """Sample connection configuration."""
    return {
        'host': 'localhost',
        'port': 1521,
        'database': 'XEPDB1',
        'user': 'test_user',
        'password': 'test_password',
    }
