"""Unit tests for the DDL text passes."""

from oradex.utils.ddl_text import (
    join_fragments,
    normalize_whitespace,
    qualify_trigger_table,
    split_alter_statements,
    split_lines,
    split_trigger_statements,
    terminate_view_ddl,
    tidy_block_terminators,
)


class TestNormalizeWhitespace:
    """Tests for normalize_whitespace function."""

    def test_empty_input(self):
        assert normalize_whitespace('') == ''
        assert normalize_whitespace(None) == ''

    def test_crlf_converted(self):
        result = normalize_whitespace('CREATE TABLE t\r\n(id NUMBER)\r\n')
        assert '\r' not in result
        assert result == 'CREATE TABLE t\n(id NUMBER)'

    def test_trailing_whitespace_removed_per_line(self):
        result = normalize_whitespace('  CREATE TABLE t   \n  (id NUMBER)\t\n')
        assert result == 'CREATE TABLE t\n  (id NUMBER)'

    def test_inner_blank_lines_kept(self):
        result = normalize_whitespace('\n\nA;\n\n\nB;\n\n')
        assert result == 'A;\n\n\nB;'

    def test_split_lines_handles_all_endings(self):
        assert split_lines('a\r\nb\rc\nd') == ['a', 'b', 'c', 'd']


class TestTerminateViewDdl:
    """Tests for terminate_view_ddl function."""

    def test_comment_on_last_line_gets_terminator(self):
        ddl = 'CREATE VIEW v AS\nSELECT 1 FROM dual -- one'
        result = terminate_view_ddl(ddl)
        assert result.split('\n')[-1] == ';'
        assert result.split('\n')[-2] == 'SELECT 1 FROM dual -- one'

    def test_is_idempotent(self):
        ddl = 'CREATE VIEW v AS\nSELECT 1 FROM dual -- one'
        once = terminate_view_ddl(ddl)
        twice = terminate_view_ddl(once)
        assert once == twice
        assert twice.count('\n;') == 1

    def test_no_comment_unchanged(self):
        ddl = 'CREATE VIEW v AS\nSELECT 1 FROM dual;'
        assert terminate_view_ddl(ddl) == ddl

    def test_empty_unchanged(self):
        assert terminate_view_ddl('') == ''


class TestTidyBlockTerminators:
    """Tests for tidy_block_terminators function."""

    def test_blank_lines_before_slash_removed(self):
        ddl = 'BEGIN\n  NULL;\nEND;\n\n  \n/'
        assert tidy_block_terminators(ddl) == 'BEGIN\n  NULL;\nEND;\n/'

    def test_indented_slash_becomes_standalone(self):
        ddl = 'END;\n\n   /\nCREATE PACKAGE BODY x AS\nEND;\n/'
        result = tidy_block_terminators(ddl)
        assert result == 'END;\n/\nCREATE PACKAGE BODY x AS\nEND;\n/'

    def test_division_left_alone(self):
        ddl = 'x := a /\n  b;'
        assert tidy_block_terminators(ddl) == ddl

    def test_blank_lines_elsewhere_kept(self):
        ddl = 'BEGIN\n\n  NULL;\nEND;\n/'
        assert tidy_block_terminators(ddl) == ddl


class TestSplitAlterStatements:
    """Tests for split_alter_statements function."""

    def test_no_alter(self):
        ddl = 'CREATE TABLE t (id NUMBER);'
        create, alters = split_alter_statements(ddl)
        assert create == ddl
        assert alters == []

    def test_alters_split_out(self):
        ddl = (
            'CREATE TABLE t (id NUMBER);\n'
            '\n'
            '  ALTER TABLE t ADD CONSTRAINT z CHECK (id > 0) ENABLE;\n'
            '  ALTER TABLE t ADD CONSTRAINT a PRIMARY KEY (id)\n'
            '  USING INDEX ENABLE;'
        )
        create, alters = split_alter_statements(ddl)
        assert create == 'CREATE TABLE t (id NUMBER);'
        assert alters == [
            'ALTER TABLE t ADD CONSTRAINT z CHECK (id > 0) ENABLE;',
            'ALTER TABLE t ADD CONSTRAINT a PRIMARY KEY (id)\n  USING INDEX ENABLE;',
        ]

    def test_alter_inside_line_not_split(self):
        ddl = 'CREATE TABLE t ("SALTER" NUMBER, "X ALTER Y" NUMBER);'
        create, alters = split_alter_statements(ddl)
        assert create == ddl
        assert alters == []


class TestQualifyTriggerTable:
    """Tests for qualify_trigger_table function."""

    def test_unqualified_table_gets_schema(self):
        ddl = 'CREATE TRIGGER "HR"."T1"\nBEFORE INSERT ON EMPLOYEES\nFOR EACH ROW'
        result, found = qualify_trigger_table(ddl, 'HR')
        assert found
        assert 'ON "HR".EMPLOYEES\n' in result

    def test_quoted_unqualified_table_gets_schema(self):
        ddl = 'CREATE TRIGGER "HR"."T1"\nBEFORE INSERT ON "EMPLOYEES"\nFOR EACH ROW'
        result, _ = qualify_trigger_table(ddl, 'HR')
        assert 'ON "HR"."EMPLOYEES"' in result

    def test_qualified_table_unchanged(self):
        ddl = 'CREATE TRIGGER "HR"."T1"\nBEFORE INSERT ON "HR"."EMPLOYEES"\nFOR EACH ROW'
        result, found = qualify_trigger_table(ddl, 'HR')
        assert found
        assert result == ddl

    def test_lowercase_on_and_newline(self):
        ddl = 'create trigger t1 before insert\non\n  employees for each row'
        result, found = qualify_trigger_table(ddl, 'HR')
        assert found
        assert '"HR".employees for each row' in result

    def test_only_first_on_clause(self):
        ddl = 'CREATE TRIGGER T1 AFTER UPDATE ON EMP\nBEGIN\n  x := 1 ON y;\nEND;'
        result, _ = qualify_trigger_table(ddl, 'HR')
        assert result.count('"HR".') == 1
        assert 'x := 1 ON y;' in result

    def test_missing_on_clause(self):
        ddl = 'CREATE TRIGGER T1 INSTEAD OF something'
        result, found = qualify_trigger_table(ddl, 'HR')
        assert not found
        assert result == ddl


class TestSplitTriggerStatements:
    """Tests for split_trigger_statements function."""

    def test_single_trigger_terminated(self):
        ddl = 'CREATE TRIGGER t1 BEFORE INSERT ON "HR"."E"\nBEGIN\n  NULL;\nEND;'
        assert split_trigger_statements(ddl) == [ddl + '\n/']

    def test_existing_terminator_not_doubled(self):
        ddl = 'CREATE TRIGGER t1\nBEGIN\n  NULL;\nEND;\n\n/'
        assert split_trigger_statements(ddl) == ['CREATE TRIGGER t1\nBEGIN\n  NULL;\nEND;\n/']

    def test_alter_trigger_split(self):
        ddl = (
            'CREATE TRIGGER t1\nBEGIN\n  NULL;\nEND;\n/\n'
            'ALTER TRIGGER "HR"."T1" ENABLE;'
        )
        assert split_trigger_statements(ddl) == [
            'CREATE TRIGGER t1\nBEGIN\n  NULL;\nEND;\n/',
            'ALTER TRIGGER "HR"."T1" ENABLE;',
        ]

    def test_alter_trigger_gets_statement_terminator(self):
        ddl = 'CREATE TRIGGER t1\nEND;\n/\nALTER TRIGGER "HR"."T1" DISABLE\n/'
        statements = split_trigger_statements(ddl)
        assert statements[1] == 'ALTER TRIGGER "HR"."T1" DISABLE;'

    def test_alter_trigger_in_body_not_split(self):
        ddl = "CREATE TRIGGER t1\nBEGIN\n  EXECUTE IMMEDIATE 'ALTER TRIGGER x ENABLE';\nEND;"
        assert len(split_trigger_statements(ddl)) == 1


class TestJoinFragments:
    """Tests for join_fragments function."""

    def test_empty_fragments_dropped(self):
        assert join_fragments(['A;', '', None, '  \n', 'B;']) == 'A;\n\nB;'

    def test_trailing_whitespace_trimmed(self):
        assert join_fragments(['A;  \n', 'B;\n\n']) == 'A;\n\nB;'

    def test_nothing(self):
        assert join_fragments([]) == ''
