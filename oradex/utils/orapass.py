"""Password lookup in an orapass file.

Each non-comment line holds ``host:port:database:username:password``.
A field of ``*`` matches anything. Host, database and username compare
case-insensitively. Connection values that are not known (no host
for a TNS alias, say) match any entry. The first matching line wins.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional

from ..config import DEFAULT_ORAPASS

logger = logging.getLogger(__name__)


def candidate_files(path: Optional[str] = None) -> List[Path]:
    """Files searched for a password, in search order."""
    candidates = []
    if path:
        candidates.append(Path(path).expanduser())
    env_path = os.environ.get('ORAPASS_FILE')
    if env_path:
        candidates.append(Path(env_path).expanduser())
    candidates.append(Path(DEFAULT_ORAPASS).expanduser())
    return candidates


def _field_matches(pattern: str, value: Optional[str], ignore_case: bool = True) -> bool:
    if pattern == '*' or value is None:
        return True
    if ignore_case:
        return pattern.upper() == str(value).upper()
    return pattern == str(value)


def parse_line(line: str) -> Optional[List[str]]:
    """
    Split an orapass line into its five fields.

    The password is everything after the fourth ':', so it may itself
    contain ':'. Blank lines and '#' comments give None.
    """
    line = line.strip()
    if not line or line.startswith('#'):
        return None
    fields = line.split(':', 4)
    if len(fields) != 5:
        return None
    return [f.strip() for f in fields[:4]] + [fields[4]]


def find_password(
    user: str,
    host: Optional[str] = None,
    port: Optional[int] = None,
    database: Optional[str] = None,
    path: Optional[str] = None
) -> Optional[str]:
    """
    Find the password for a connection in the first existing orapass file.

    Args:
        user: Username to find a password for
        host: Database host
        port: Database port
        database: Database (service) name
        path: Orapass file to search before the default locations

    Returns:
        The password, or None if no line matches
    """
    for candidate in candidate_files(path):
        if not candidate.is_file():
            continue

        logger.debug("Searching %s for a password", candidate)
        with open(candidate, encoding='utf-8') as f:
            for line in f:
                fields = parse_line(line)
                if fields is None:
                    continue
                f_host, f_port, f_db, f_user, password = fields
                if (
                    _field_matches(f_host, host)
                    and _field_matches(f_port, port, ignore_case=False)
                    and _field_matches(f_db, database)
                    and _field_matches(f_user, user)
                ):
                    return password
        return None

    return None
