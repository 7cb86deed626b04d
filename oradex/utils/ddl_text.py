"""Text passes applied to DDL returned by DBMS_METADATA."""

import re
from typing import Iterable, List, Optional, Tuple

FRAGMENT_SEPARATOR = '\n\n'
BLOCK_TERMINATOR = '/'
STATEMENT_TERMINATOR = ';'

_COMMENT_MARKER = re.compile(r'--')
_ALTER_LINE = re.compile(r'^\s*ALTER\s', re.IGNORECASE)
_ALTER_TRIGGER_LINE = re.compile(r'^[ \t]*ALTER\s+TRIGGER\b', re.MULTILINE)
_ON_CLAUSE = re.compile(r'\sON\s+', re.IGNORECASE)
_TABLE_REFERENCE = re.compile(r'\S+')


def split_lines(text: str) -> List[str]:
    """Split text on LF, CRLF or CR line endings."""
    return text.replace('\r\n', '\n').replace('\r', '\n').split('\n')


def normalize_whitespace(ddl: Optional[str]) -> str:
    """
    Normalize line endings and trailing whitespace, then trim the text.

    Args:
        ddl: The DDL string

    Returns:
        DDL with LF line endings, no trailing whitespace on any line and
        no leading or trailing blank lines
    """
    if not ddl:
        return ""

    lines = [line.rstrip() for line in split_lines(ddl)]
    return '\n'.join(lines).strip()


def terminate_view_ddl(ddl: str) -> str:
    """
    Append a bare ';' line when the last line of a view holds a comment.

    DBMS_METADATA leaves the terminator off in that case, which makes the
    view DDL unusable as a script. Text that already ends with a ';' line
    is returned unchanged.
    """
    if not ddl:
        return ddl

    lines = split_lines(ddl)
    if _COMMENT_MARKER.search(lines[-1]):
        lines.append(STATEMENT_TERMINATOR)
    return '\n'.join(lines)


def tidy_block_terminators(ddl: str) -> str:
    """Drop blank lines that sit directly above a standalone '/' line."""
    if not ddl:
        return ddl

    result: List[str] = []
    for line in split_lines(ddl):
        if line.strip() == BLOCK_TERMINATOR:
            while result and not result[-1].strip():
                result.pop()
            result.append(BLOCK_TERMINATOR)
        else:
            result.append(line)
    return '\n'.join(result)


def split_alter_statements(ddl: str) -> Tuple[str, List[str]]:
    """
    Split object DDL into its CREATE statement and trailing ALTER statements.

    A new ALTER statement starts at every line beginning with 'ALTER '.

    Returns:
        (create statement, list of ALTER statements), each trimmed
    """
    create: List[str] = []
    alters: List[List[str]] = []

    for line in split_lines(ddl):
        if _ALTER_LINE.match(line):
            alters.append([line.strip()])
        elif alters:
            alters[-1].append(line)
        else:
            create.append(line)

    return (
        '\n'.join(create).strip(),
        ['\n'.join(stmt).strip() for stmt in alters],
    )


def qualify_trigger_table(ddl: str, schema: str) -> Tuple[str, bool]:
    """
    Make sure the ON <table> clause of a trigger names the table owner.

    Only the first ON clause is considered. Trigger and table are assumed
    to share the owner.

    Returns:
        (trigger DDL, whether an ON clause was found)
    """
    match = _ON_CLAUSE.search(ddl)
    if not match:
        return ddl, False

    rest = ddl[match.end():]
    table = _TABLE_REFERENCE.match(rest)
    if table and '.' not in table.group(0):
        ddl = f'{ddl[:match.end()]}"{schema}".{rest}'
    return ddl, True


def split_trigger_statements(ddl: str) -> List[str]:
    """
    Split a trigger's DDL into the CREATE TRIGGER block and ALTER TRIGGER
    statements.

    The CREATE block is closed with a '/' line. ALTER TRIGGER statements
    are kept as separate ';' terminated statements.
    """
    starts = [m.start() for m in _ALTER_TRIGGER_LINE.finditer(ddl)]
    if starts and starts[0] == 0:
        starts = starts[1:]
    bounds = [0] + starts + [len(ddl)]
    pieces = [ddl[bounds[i]:bounds[i + 1]] for i in range(len(bounds) - 1)]

    statements = [pieces[0].rstrip('\n\r\t /') + '\n' + BLOCK_TERMINATOR]
    for piece in pieces[1:]:
        stmt = piece.strip().rstrip('\n\r\t /')
        if not stmt.endswith(STATEMENT_TERMINATOR):
            stmt += STATEMENT_TERMINATOR
        statements.append(stmt)
    return statements


def join_fragments(fragments: Iterable[Optional[str]]) -> str:
    """Join DDL fragments with a blank line, dropping empty ones."""
    trimmed = (f.rstrip() for f in fragments if f)
    return FRAGMENT_SEPARATOR.join(f for f in trimmed if f)
