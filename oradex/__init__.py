"""Oracle DDL Extract: write the DDL and grants for Oracle database objects."""

__version__ = '0.2.0'
