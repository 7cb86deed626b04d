"""Configuration constants for Oracle DDL extraction."""

import re
from dataclasses import dataclass
from typing import Dict, Any

# Object types extracted by schema and their output directory names
OBJECT_TYPES: Dict[str, str] = {
    'DATABASE LINK': 'DATABASE_LINK',
    'FUNCTION': 'FUNCTION',
    'MATERIALIZED VIEW': 'MATERIALIZED_VIEW',
    'PACKAGE': 'PACKAGE',
    'PROCEDURE': 'PROCEDURE',
    'SEQUENCE': 'SEQUENCE',
    'SYNONYM': 'SYNONYM',
    'TABLE': 'TABLE',
    'TYPE': 'TYPE',
    'VIEW': 'VIEW',
}

# DBMS_METADATA keywords that differ from the dba_objects object type
METADATA_TYPES: Dict[str, str] = {
    'DATABASE LINK': 'DB_LINK',
    'MATERIALIZED VIEW': 'MATERIALIZED_VIEW',
}

# Types that get indexes, comments and triggers appended to their DDL
TABLE_LIKE_TYPES = ('TABLE', 'VIEW', 'MATERIALIZED VIEW')

# Types whose indexes are exported with them
INDEXED_TYPES = ('TABLE', 'MATERIALIZED VIEW')

# Oracle maintained schemas, skipped unless explicitly requested
EXCLUDED_SCHEMAS = (
    'APPQOSSYS', 'AUDSYS', 'CTXSYS', 'DBSFWUSER', 'DBSNMP', 'DMSYS',
    'EXFSYS', 'GSMADMIN_INTERNAL', 'MDSYS', 'OJVMSYS', 'OLAPSYS',
    'ORACLE_OCM', 'ORDSYS', 'OUTLN', 'PERFSTAT', 'REMOTE_SCHEDULER_AGENT',
    'SQLTXPLAIN', 'SYS', 'SYSMAN', 'SYSTEM', 'TSMSYS', 'WMSYS', 'XDB',
)

# DBMS_METADATA transform parameters that do not depend on user options
BASE_TRANSFORM_PARAMS: Dict[str, Any] = {
    'CONSTRAINTS': True,
    'REF_CONSTRAINTS': True,
    'SQLTERMINATOR': True,
    'PRETTY': True,
}

# Default connection settings
DEFAULT_PORT = 1521
DEFAULT_ORAPASS = '~/.orapass'


@dataclass(frozen=True)
class ExtractOptions:
    """
    Settings for one extraction run.

    The first three fields are DBMS_METADATA session transforms and take
    effect through setup_transform_params(); the rest control which
    fragments are assembled for each object.
    """

    constraints_as_alter: bool = False
    force: bool = False
    storage: bool = False
    needed_grants: bool = False
    object_grants: bool = False
    synonyms: bool = False
    quiet: bool = False

    def transform_params(self) -> Dict[str, Any]:
        """Return the session transform parameters, in the order they are set."""
        params = dict(BASE_TRANSFORM_PARAMS)
        params['CONSTRAINTS_AS_ALTER'] = self.constraints_as_alter
        params['FORCE'] = self.force
        params['STORAGE'] = self.storage
        params['SEGMENT_ATTRIBUTES'] = self.storage
        return params


def object_dir_name(object_type: str) -> str:
    """Directory name for an object type (whitespace replaced by '_')."""
    if object_type in OBJECT_TYPES:
        return OBJECT_TYPES[object_type]
    return re.sub(r'\s+', '_', object_type.strip())
