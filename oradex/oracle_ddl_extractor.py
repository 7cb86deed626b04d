#!/usr/bin/env python3
"""
Oracle DDL Extract

Extract the DDL, comments, triggers, indexes and grants for Oracle
database objects, either for a single object (written to stdout) or for
whole schemas (one file per object under <base>/<OWNER>/<TYPE>/).
"""

import argparse
import getpass
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Tuple

import oracledb

from . import __version__
from .config import (
    DEFAULT_PORT,
    INDEXED_TYPES,
    METADATA_TYPES,
    TABLE_LIKE_TYPES,
    ExtractOptions,
    object_dir_name,
)
from .utils.ddl_text import (
    join_fragments,
    normalize_whitespace,
    qualify_trigger_table,
    split_alter_statements,
    split_trigger_statements,
    terminate_view_ddl,
    tidy_block_terminators,
)
from .utils.oracle_queries import OracleQueries
from .utils.orapass import find_password

logger = logging.getLogger(__name__)


class OradexError(Exception):
    """Base class for extraction errors."""


class DataAccessError(OradexError):
    """A dictionary query or DBMS_METADATA call failed."""


class CredentialError(OradexError):
    """No password could be found for the connection."""


class ObjectNotFoundError(OradexError):
    """The requested object does not exist or is not visible."""


class ObjectRef(NamedTuple):
    """An object resolved from the data dictionary."""

    owner: str
    name: str
    object_type: str

    @property
    def dir_name(self) -> str:
        return object_dir_name(self.object_type)


class OracleConnection:
    """Context manager for Oracle database connections."""

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize Oracle connection.

        Args:
            config: Dictionary with connection parameters:
                - host: Database host (optional, TNS alias used when missing)
                - port: Database port
                - database: Service name or TNS alias
                - user: Username
                - password: Password
        """
        self.config = config
        self.connection = None

    def dsn(self) -> str:
        """Build the DSN, using the database name as a TNS alias when no host is set."""
        host = self.config.get('host')
        database = self.config.get('database')
        if not host:
            return database
        return oracledb.makedsn(
            host,
            self.config.get('port') or DEFAULT_PORT,
            service_name=database
        )

    def __enter__(self):
        """Establish database connection."""
        try:
            self.connection = oracledb.connect(
                user=self.config['user'],
                password=self.config['password'],
                dsn=self.dsn()
            )
        except oracledb.DatabaseError as e:
            raise DataAccessError(f"Could not connect to {self.dsn()}: {e}") from e
        return self.connection

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Close database connection."""
        if self.connection:
            self.connection.close()
            self.connection = None


def _read_value(value) -> str:
    """Return a column value as text, reading LOBs."""
    if value is None:
        return ""
    if hasattr(value, 'read'):
        return value.read() or ""
    return str(value)


def _carp(quiet: bool, message: str, *args) -> None:
    """Log a non-fatal problem unless running quietly."""
    if not quiet:
        logger.warning(message, *args)


def setup_transform_params(cursor, options: ExtractOptions) -> None:
    """
    Configure the DBMS_METADATA session transforms for this connection.

    The transforms are session scoped, so this runs once, before any DDL
    is fetched through the cursor's connection.

    Args:
        cursor: Oracle database cursor
        options: Extraction options supplying the user controlled transforms

    Raises:
        DataAccessError: If the transforms could not be set
    """
    statements = ["DBMS_METADATA.SET_TRANSFORM_PARAM ( DBMS_METADATA.SESSION_TRANSFORM, 'DEFAULT' );"]
    for param, value in options.transform_params().items():
        sql_value = 'TRUE' if value else 'FALSE'
        statements.append(
            f"DBMS_METADATA.SET_TRANSFORM_PARAM ( DBMS_METADATA.SESSION_TRANSFORM, '{param}', {sql_value} );"
        )
    block = "BEGIN\n    " + "\n    ".join(statements) + "\nEND;"

    try:
        cursor.execute(block)
    except oracledb.DatabaseError as e:
        raise DataAccessError(f"Could not set DBMS_METADATA transforms: {e}") from e


def run_query(cursor, query: str, schema: str, name: str) -> str:
    """
    Run a facet query and join the returned statements.

    Args:
        cursor: Oracle database cursor
        query: Query bound with :schema and :name
        schema: Owner of the object
        name: Name of the object

    Returns:
        The rows, trailing whitespace removed, separated by blank lines

    Raises:
        DataAccessError: If the query fails
    """
    try:
        cursor.execute(query, {'schema': schema, 'name': name})
        values = [_read_value(row[0]) for row in cursor.fetchall()]
    except oracledb.DatabaseError as e:
        raise DataAccessError(f'Query failed for "{schema}"."{name}": {e}') from e
    return join_fragments(values)


def column_comments(cursor, schema: str, name: str) -> str:
    """COMMENT ON COLUMN statements for a table, view or materialized view."""
    return run_query(cursor, OracleQueries.get_query('COLUMN_COMMENTS'), schema, name)


def object_comments(cursor, schema: str, name: str, object_type: str) -> str:
    """COMMENT ON TABLE / MATERIALIZED VIEW statement for an object."""
    if object_type == 'MATERIALIZED VIEW':
        return run_query(cursor, OracleQueries.get_query('MVIEW_COMMENTS'), schema, name)
    return run_query(cursor, OracleQueries.get_query('TABLE_COMMENTS'), schema, name)


def granted_privs(cursor, schema: str, name: str) -> str:
    """GRANT statements for the privileges granted on an object."""
    return run_query(cursor, OracleQueries.get_query('GRANTED_PRIVS'), schema, name)


def needed_privs(cursor, schema: str, name: str) -> str:
    """
    GRANT statements for privileges the object appears to need.

    This is a best guess from dependency data and may include privileges
    the object does not actually use.
    """
    return run_query(cursor, OracleQueries.get_query('NEEDED_PRIVS'), schema, name)


def object_indexes(cursor, schema: str, name: str) -> str:
    """CREATE INDEX statements for indexes not backing a constraint."""
    ddl = run_query(cursor, OracleQueries.get_query('INDEXES'), schema, name)
    return normalize_whitespace(ddl)


def object_synonyms(cursor, schema: str, name: str) -> str:
    """CREATE SYNONYM statements for synonyms pointing at an object."""
    return run_query(cursor, OracleQueries.get_query('SYNONYMS'), schema, name)


def get_object_type(cursor, schema: str, name: str) -> Optional[str]:
    """
    Look up the type of an object.

    Returns:
        The object type, or None if the object does not exist
    """
    try:
        cursor.execute(OracleQueries.OBJECT_TYPE, {'schema': schema, 'name': name})
        row = cursor.fetchone()
    except oracledb.DatabaseError as e:
        raise DataAccessError(f'Type lookup failed for "{schema}"."{name}": {e}') from e
    if row and row[0]:
        return row[0]
    return None


def extract_ddl(
    cursor,
    object_type: str,
    object_name: str,
    schema: str
) -> str:
    """
    Extract DDL for an object using DBMS_METADATA.GET_DDL.

    Views and materialized views whose last line is a comment get a ';'
    line appended. For other types, blank lines in front of a '/' block
    terminator are removed.

    Args:
        cursor: Oracle database cursor
        object_type: Type of object, as found in dba_objects
        object_name: Name of the object
        schema: Schema name

    Returns:
        The normalized DDL, or an empty string if there is none

    Raises:
        DataAccessError: If DBMS_METADATA fails
    """
    metadata_type = METADATA_TYPES.get(object_type, object_type)

    try:
        cursor.execute("""
            SELECT DBMS_METADATA.GET_DDL(:obj_type, :obj_name, :schema)
            FROM DUAL
        """, {
            'obj_type': metadata_type,
            'obj_name': object_name,
            'schema': schema
        })
        result = cursor.fetchone()
        ddl = _read_value(result[0]) if result else ""
    except oracledb.DatabaseError as e:
        raise DataAccessError(
            f'Could not get DDL for {object_type} "{schema}"."{object_name}": {e}'
        ) from e

    ddl = normalize_whitespace(ddl)
    if not ddl:
        return ""

    if object_type in ('VIEW', 'MATERIALIZED VIEW'):
        return terminate_view_ddl(ddl)
    return tidy_block_terminators(ddl)


def extract_triggers(cursor, schema: str, table_name: str, quiet: bool = False) -> str:
    """
    Extract the triggers defined on a table or view.

    Unqualified ON <table> clauses get the schema added, and any ALTER
    TRIGGER statements are split out of the CREATE TRIGGER text.

    Args:
        cursor: Oracle database cursor
        schema: Owner of the table
        table_name: Table or view name
        quiet: Suppress the warning for triggers without an ON clause

    Returns:
        Trigger statements separated by blank lines

    Raises:
        DataAccessError: If the trigger query fails
    """
    try:
        cursor.execute(OracleQueries.get_query('TRIGGERS'), {'schema': schema, 'name': table_name})
        values = [_read_value(row[0]) for row in cursor.fetchall()]
    except oracledb.DatabaseError as e:
        raise DataAccessError(f'Could not get triggers for "{schema}"."{table_name}": {e}') from e

    statements: List[str] = []
    for value in values:
        ddl = normalize_whitespace(value)
        if not ddl:
            continue

        ddl, found = qualify_trigger_table(ddl, schema)
        if not found:
            _carp(quiet, 'Unexpected trigger DDL for "%s"."%s": no ON clause', schema, table_name)

        statements.extend(split_trigger_statements(ddl))

    return join_fragments(statements)


def _facet(quiet: bool, label: str, fetch, *args) -> str:
    """Run one facet fetch, logging a failure and returning an empty fragment."""
    try:
        return fetch(*args)
    except DataAccessError as e:
        _carp(quiet, "Skipping %s: %s", label, e)
        return ""


def _table_like_ddl(cursor, schema: str, name: str, object_type: str, options: ExtractOptions) -> List[str]:
    """Fragments for a table, view or materialized view, in output order."""
    ddl = extract_ddl(cursor, object_type, name, schema)
    create, alters = split_alter_statements(ddl)
    quiet = options.quiet

    fragments = [create]

    if object_type in INDEXED_TYPES:
        fragments.append(_facet(quiet, 'indexes', object_indexes, cursor, schema, name))

    fragments.extend(sorted(alters))

    fragments.append(_facet(quiet, 'comments', object_comments, cursor, schema, name, object_type))
    fragments.append(_facet(quiet, 'column comments', column_comments, cursor, schema, name))
    fragments.append(_facet(quiet, 'triggers', extract_triggers, cursor, schema, name, quiet))
    return fragments


def export_ddl(
    cursor,
    schema: str,
    name: str,
    object_type: str,
    options: Optional[ExtractOptions] = None
) -> str:
    """
    Assemble the DDL document for one object.

    Tables, views and materialized views are written as: needed grants,
    CREATE statement, indexes, sorted ALTER statements, object comment,
    column comments, triggers, synonyms, granted privileges. Other
    object types are written as needed grants, DDL, synonyms, granted
    privileges. Grants and synonyms are only included when enabled in
    the options.

    Raises:
        DataAccessError: If the object DDL itself cannot be fetched
    """
    options = options or ExtractOptions()
    quiet = options.quiet

    if object_type in TABLE_LIKE_TYPES:
        fragments = _table_like_ddl(cursor, schema, name, object_type, options)
    else:
        fragments = [extract_ddl(cursor, object_type, name, schema)]

    if options.needed_grants:
        fragments.insert(0, _facet(quiet, 'needed grants', needed_privs, cursor, schema, name))

    if options.synonyms:
        fragments.append(_facet(quiet, 'synonyms', object_synonyms, cursor, schema, name))

    if options.object_grants:
        fragments.append(_facet(quiet, 'grants', granted_privs, cursor, schema, name))

    return join_fragments(fragments)


def split_object_name(object_name: str) -> Tuple[str, str]:
    """
    Split [schema.]object into its parts.

    Unquoted parts are upper cased, quoted parts keep their case and lose
    the quotes.

    Returns:
        (schema, name); schema is empty when not given
    """
    parts = []
    for part in object_name.strip().split('.'):
        if '"' in part:
            parts.append(part.replace('"', ''))
        else:
            parts.append(part.upper())

    if len(parts) == 1:
        return '', parts[0]
    if len(parts) == 2:
        return parts[0], parts[1]
    raise ValueError(f"Invalid object name: {object_name}")


def _csv_split(value: Optional[str]) -> List[str]:
    """Split a comma-separated schema list; quoted names keep their case."""
    if not value:
        return []
    names = []
    for part in value.split(','):
        part = part.strip()
        if not part:
            continue
        if '"' in part:
            names.append(part.replace('"', ''))
        else:
            names.append(part.upper())
    return names


def get_schema_list(
    cursor,
    include: Optional[Iterable[str]] = None,
    exclude: Optional[Iterable[str]] = None
) -> List[str]:
    """
    List the schemas to extract.

    Args:
        cursor: Oracle database cursor
        include: Schemas to extract; when given, exclude is ignored
        exclude: Schemas to skip

    Returns:
        Schema names in dictionary order
    """
    included = set(include or [])
    excluded = set(exclude or [])

    try:
        cursor.execute(OracleQueries.SCHEMAS)
        rows = cursor.fetchall()
    except oracledb.DatabaseError as e:
        raise DataAccessError(f"Could not list schemas: {e}") from e

    schemas = []
    for (owner,) in rows:
        if included:
            if owner in included:
                schemas.append(owner)
        elif owner not in excluded:
            schemas.append(owner)
    return schemas


def get_schema_objects(cursor, schema: str) -> List[ObjectRef]:
    """
    List the extractable objects of a schema.

    Returns:
        ObjectRef per object name
    """
    try:
        cursor.execute(OracleQueries.SCHEMA_OBJECTS, {'schema': schema})
        rows = cursor.fetchall()
    except oracledb.DatabaseError as e:
        raise DataAccessError(f'Could not list objects for "{schema}": {e}') from e
    return [ObjectRef(row[0], row[1], row[2]) for row in rows]


def extract_object(cursor, schema: str, name: str, options: ExtractOptions) -> str:
    """
    Resolve an object's type and assemble its DDL.

    Raises:
        ObjectNotFoundError: If the object does not exist
        DataAccessError: If the object DDL cannot be fetched
    """
    object_type = get_object_type(cursor, schema, name)
    if not object_type:
        raise ObjectNotFoundError(f'Object "{schema}"."{name}" not found')
    logger.debug('Extracting %s "%s"."%s"', object_type, schema, name)
    return export_ddl(cursor, schema, name, object_type, options)


class DDLExtractor:
    """Writes the DDL for whole schemas, one file per object."""

    def __init__(
        self,
        cursor,
        base_dir: str,
        options: Optional[ExtractOptions] = None
    ):
        """
        Initialize the extractor.

        Args:
            cursor: Oracle database cursor with transforms already set
            base_dir: Base output directory for extracted files
            options: Extraction options
        """
        self.cursor = cursor
        self.base_dir = Path(base_dir)
        self.options = options or ExtractOptions()
        self.written = 0
        self.failed = 0

    def _carp(self, message: str, *args) -> None:
        _carp(self.options.quiet, message, *args)

    def object_path(self, ref: ObjectRef) -> Path:
        """Output path for an object: <base>/<OWNER>/<TYPE_DIR>/<NAME>.sql"""
        return self.base_dir / ref.owner / ref.dir_name / f"{ref.name}.sql"

    def write_object(self, ref: ObjectRef, ddl: str) -> Path:
        """Write an assembled DDL document, creating directories as needed."""
        path = self.object_path(ref)
        path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(ddl + '\n\n')
        return path

    def extract_object(self, ref: ObjectRef) -> bool:
        """Extract and write one object; failures are logged, not raised."""
        try:
            ddl = export_ddl(self.cursor, ref.owner, ref.name, ref.object_type, self.options)
            path = self.write_object(ref, ddl)
        except (DataAccessError, OSError) as e:
            self._carp('Failed to extract %s "%s"."%s": %s', ref.object_type, ref.owner, ref.name, e)
            self.failed += 1
            return False

        logger.debug("Wrote %s", path)
        self.written += 1
        return True

    def extract_schema(self, schema: str) -> int:
        """
        Extract every object of a schema.

        Returns:
            Number of objects written
        """
        logger.info("Processing schema: %s", schema)
        objects = get_schema_objects(self.cursor, schema)
        if not objects:
            self._carp('No objects returned for "%s"', schema)
            return 0

        written = 0
        for ref in objects:
            if self.extract_object(ref):
                written += 1

        logger.info("  %s: %d of %d objects written", schema, written, len(objects))
        return written

    def extract_schemas(
        self,
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None
    ) -> None:
        """Extract every selected schema."""
        schemas = get_schema_list(self.cursor, include, exclude)
        logger.info("Starting extraction to: %s", self.base_dir)
        logger.info("Schemas: %s", ', '.join(schemas))

        for schema in schemas:
            try:
                self.extract_schema(schema)
            except DataAccessError as e:
                self._carp("Skipping schema %s: %s", schema, e)

        logger.info("Extraction complete: %d written, %d failed", self.written, self.failed)


def build_parser() -> argparse.ArgumentParser:
    """Command line parser."""
    parser = argparse.ArgumentParser(
        prog='oradex',
        description='Extract the DDL and grants for Oracle database objects',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # One object, written to stdout
  oradex -d ORCL -u scott -o hr.employees --grants

  # Selected schemas, one file per object
  oradex -H db.example.com -d ORCL -u scott -s HR,FINANCE -b /data/ddl

  # Every non-system schema except SCRATCH
  oradex -d ORCL -u scott -x SCRATCH -b /data/ddl
"""
    )

    conn_group = parser.add_argument_group('Connection Options')
    conn_group.add_argument(
        '-d', '--database', default=os.environ.get('ORACLE_SID'),
        help='Database service name or TNS alias (default: $ORACLE_SID)'
    )
    conn_group.add_argument(
        '-H', '--host', default=os.environ.get('ORACLE_HOST'),
        help='Database host (default: $ORACLE_HOST; without a host the database is used as a TNS alias)'
    )
    conn_group.add_argument(
        '-p', '--port', type=int, default=os.environ.get('ORACLE_PORT', DEFAULT_PORT),
        help='Database port (default: $ORACLE_PORT or 1521)'
    )
    conn_group.add_argument(
        '-u', '--user', default=os.environ.get('ORACLE_USER'),
        help='Username (default: $ORACLE_USER or the OS user)'
    )
    conn_group.add_argument('-f', '--orapass-file', help='Orapass file to search first')
    conn_group.add_argument('--password', help='Password (default: look up in the orapass file)')

    ddl_group = parser.add_argument_group('DDL Options')
    ddl_group.add_argument(
        '--alter', action='store_true',
        help='Write constraints as ALTER commands instead of inline'
    )
    ddl_group.add_argument(
        '--needed', action='store_true',
        help='Include grants the object probably needs (best guess, may over-report)'
    )
    ddl_group.add_argument('--grants', action='store_true', help='Include grants on the object')
    ddl_group.add_argument('--force', action='store_true', help='Include the FORCE keyword in CREATE commands')
    ddl_group.add_argument('--storage', action='store_true', help='Include storage parameters in CREATE commands')
    ddl_group.add_argument('--synonyms', action='store_true', help='Include synonyms pointing at the object')

    extract_group = parser.add_argument_group('Extraction Options')
    extract_group.add_argument(
        '-b', '--base-dir', default=os.environ.get('BASE_DIR', '.'),
        help='Directory to write extracted DDL to (default: $BASE_DIR or .)'
    )
    extract_group.add_argument('-s', '--schemas', help='Comma-separated list of schemas to extract')
    extract_group.add_argument(
        '-x', '--exclude',
        help='Comma-separated list of schemas to skip (ignored with --schemas)'
    )
    extract_group.add_argument(
        '-o', '--object',
        help='[schema.]object to extract to stdout; --base-dir and --exclude are ignored'
    )

    other_group = parser.add_argument_group('Other Options')
    other_group.add_argument('-v', '--verbose', action='store_true', help='Report progress')
    other_group.add_argument('--debug', action='store_true', help='Enable debug logging')
    other_group.add_argument('-q', '--quiet', action='store_true', help='Do not print error messages')
    other_group.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def configure_logging(verbose: bool = False, debug: bool = False, quiet: bool = False) -> None:
    """Send log records to stderr at the level chosen on the command line."""
    if quiet:
        level = logging.CRITICAL + 1
    elif debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format='%(levelname)s: %(message)s', stream=sys.stderr)


def resolve_credentials(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Build the connection config from arguments, environment and orapass file.

    Raises:
        CredentialError: If no password is available
    """
    user = args.user or getpass.getuser()
    password = args.password or find_password(
        user, args.host, args.port, args.database, args.orapass_file
    )
    if not password:
        raise CredentialError(f"No password found for {user}@{args.database}")

    return {
        'host': args.host,
        'port': args.port,
        'database': args.database,
        'user': user,
        'password': password,
    }


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose, args.debug, args.quiet)

    if not args.database:
        parser.error("a database is required (-d or $ORACLE_SID)")

    options = ExtractOptions(
        constraints_as_alter=args.alter,
        force=args.force,
        storage=args.storage,
        needed_grants=args.needed,
        object_grants=args.grants,
        synonyms=args.synonyms,
        quiet=args.quiet,
    )
    schemas = _csv_split(args.schemas)

    try:
        config = resolve_credentials(args)
        with OracleConnection(config) as connection:
            cursor = connection.cursor()
            setup_transform_params(cursor, options)

            if args.object:
                schema, name = split_object_name(args.object)
                schema = schema or (schemas[0] if schemas else config['user'].upper())
                print(extract_object(cursor, schema, name, options))
            else:
                extractor = DDLExtractor(cursor, args.base_dir, options)
                extractor.extract_schemas(schemas, _csv_split(args.exclude))
    except (OradexError, ValueError) as e:
        logger.error("%s", e)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
