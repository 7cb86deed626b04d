"""Utility modules for Oracle DDL extraction."""

from .ddl_text import join_fragments, normalize_whitespace
from .oracle_queries import OracleQueries
from .orapass import find_password

__all__ = ['join_fragments', 'normalize_whitespace', 'OracleQueries', 'find_password']
