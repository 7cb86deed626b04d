"""Oracle dictionary queries used to assemble object DDL."""

from typing import Dict

from ..config import EXCLUDED_SCHEMAS, OBJECT_TYPES

_EXCLUDED = ', '.join(f"'{s}'" for s in EXCLUDED_SCHEMAS)
_EXTRACTED_TYPES = ', '.join(
    f"'{t}'" for t in sorted(OBJECT_TYPES) if t != 'SYNONYM'
)


class OracleQueries:
    """Collection of Oracle dictionary queries for DDL assembly.

    Facet queries are bound with :schema and :name and return one
    complete SQL statement per row.
    """

    # Column comments, in column order
    COLUMN_COMMENTS = """
        SELECT 'COMMENT ON COLUMN "'
                    || u.owner || '"."' || u.table_name || '"."' || u.column_name
                    || '" IS ''' || replace ( u.comments, '''', '''''' ) || ''';'
            FROM dba_col_comments u
            JOIN dba_tab_columns c
                ON ( c.owner = u.owner
                    AND c.table_name = u.table_name
                    AND c.column_name = u.column_name )
            WHERE u.owner = :schema
                AND u.table_name = :name
                AND u.comments IS NOT NULL
            ORDER BY c.owner,
                c.table_name,
                c.column_id
    """

    # Table or view comment
    TABLE_COMMENTS = """
        SELECT 'COMMENT ON TABLE "'
                    || u.owner || '"."' || u.table_name
                    || '" IS ''' || replace ( u.comments, '''', '''''' ) || ''';'
            FROM dba_tab_comments u
            WHERE u.owner = :schema
                AND u.table_name = :name
                AND u.comments IS NOT NULL
            ORDER BY u.owner,
                u.table_name
    """

    # Materialized view comment
    MVIEW_COMMENTS = """
        SELECT 'COMMENT ON MATERIALIZED VIEW "'
                    || u.owner || '"."' || u.mview_name
                    || '" IS ''' || replace ( u.comments, '''', '''''' ) || ''';'
            FROM dba_mview_comments u
            WHERE u.owner = :schema
                AND u.mview_name = :name
                AND u.comments IS NOT NULL
            ORDER BY u.owner,
                u.mview_name
    """

    # Privileges granted on the object, one GRANT per grantee
    GRANTED_PRIVS = """
        WITH privs AS (
            SELECT p.privilege,
                    p.owner AS schema,
                    p.table_name AS object_name,
                    p.grantee,
                    p.grantable
                FROM dba_tab_privs p
                JOIN dba_objects o
                    ON ( o.owner = p.owner
                        AND o.object_name = p.table_name )
                WHERE p.owner = :schema
                    AND p.table_name = :name
                    AND ( ( o.object_type IN ( 'VIEW', 'MATERIALIZED VIEW' )
                            AND p.privilege IN ( 'SELECT', 'REFERENCES' ) )
                        OR o.object_type NOT IN ( 'VIEW', 'MATERIALIZED VIEW' ) )
        ),
        d AS (
            SELECT privilege, schema, object_name, grantee,
                    max ( grantable ) AS grantable
                FROM privs
                GROUP BY privilege, schema, object_name, grantee
        ),
        grants AS (
            SELECT listagg ( privilege, ', ' ) WITHIN GROUP ( ORDER BY privilege ) AS privs,
                    schema, object_name, grantee, grantable
                FROM d
                GROUP BY schema, object_name, grantee, grantable
        )
        SELECT 'GRANT ' || privs || ' ON "' || schema || '"."' || object_name
                    || '" TO "' || grantee || '"'
                    || CASE WHEN grantable = 'YES' THEN ' WITH GRANT OPTION ;' ELSE ' ;' END
            FROM grants
            ORDER BY 1
    """

    # Privileges the object probably needs on objects in other schemas.
    # Derived from dba_dependencies, so it can report more than is needed.
    NEEDED_PRIVS = """
        WITH objs AS (
            SELECT owner,
                    object_name,
                    object_type,
                    row_number () OVER (
                        PARTITION BY owner, object_name
                        ORDER BY CASE
                                WHEN object_type = 'MATERIALIZED VIEW' THEN 1
                                WHEN object_type = 'PACKAGE' THEN 1
                                WHEN object_type = 'TYPE' THEN 1
                                ELSE 10
                                END ) AS rn
                FROM dba_objects
                WHERE object_type <> 'SYNONYM'
        ),
        privs AS (
            SELECT tp.privilege,
                    d.referenced_owner AS schema,
                    d.referenced_name AS object_name,
                    tp.grantee,
                    CASE
                        WHEN tp.grantable = 'YES' AND o.object_type = 'VIEW' THEN 'YES'
                        ELSE 'NO'
                        END AS grantable
                FROM dba_tab_privs tp
                JOIN dba_dependencies d
                    ON ( d.owner = tp.grantee
                        AND d.referenced_owner = tp.owner
                        AND d.referenced_name = tp.table_name )
                JOIN objs o
                    ON ( o.owner = d.owner
                        AND o.object_name = d.name
                        AND o.rn = 1 )
                WHERE d.owner <> d.referenced_owner
                    AND d.owner = :schema
                    AND d.name = :name
                    AND ( ( o.object_type IN ( 'VIEW', 'MATERIALIZED VIEW' )
                            AND tp.privilege IN ( 'SELECT', 'EXECUTE' ) )
                        OR ( o.object_type = 'TABLE'
                            AND tp.privilege = 'REFERENCES' )
                        OR ( o.object_type NOT IN ( 'TABLE', 'VIEW', 'MATERIALIZED VIEW' )
                            AND tp.privilege <> 'REFERENCES' ) )
        ),
        d AS (
            SELECT privilege, schema, object_name, grantee,
                    max ( grantable ) AS grantable
                FROM privs
                GROUP BY privilege, schema, object_name, grantee
        ),
        grants AS (
            SELECT listagg ( privilege, ', ' ) WITHIN GROUP ( ORDER BY privilege ) AS privs,
                    schema, object_name, grantee, grantable
                FROM d
                GROUP BY schema, object_name, grantee, grantable
        )
        SELECT 'GRANT ' || privs || ' ON "' || schema || '"."' || object_name
                    || '" TO "' || grantee || '"'
                    || CASE WHEN grantable = 'YES' THEN ' WITH GRANT OPTION ;' ELSE ' ;' END
            FROM grants
            ORDER BY 1
    """

    # Indexes that do not back a constraint (those come with the table DDL),
    # excluding system generated LOB indexes
    INDEXES = """
        SELECT dbms_metadata.get_ddl ( 'INDEX', i.index_name, i.owner )
            FROM dba_indexes i
            LEFT JOIN dba_constraints c
                ON ( c.index_owner = i.table_owner
                    AND c.index_name = i.index_name )
            WHERE i.table_owner = :schema
                AND i.table_name = :name
                AND c.index_name IS NULL
                AND substr ( i.index_name, 1, 6 ) <> 'SYS_IL'
            ORDER BY i.owner,
                i.index_name
    """

    # Private and public synonyms pointing at the object
    SYNONYMS = """
        SELECT 'CREATE '
                    || CASE WHEN owner = 'PUBLIC' THEN 'PUBLIC ' END
                    || 'SYNONYM '
                    || CASE
                        WHEN owner = 'PUBLIC' THEN '"' || synonym_name || '"'
                        ELSE '"' || owner || '"."' || synonym_name || '"'
                        END
                    || ' FOR "' || table_owner || '"."' || table_name || '" ;'
            FROM dba_synonyms
            WHERE table_owner = :schema
                AND table_name = :name
            ORDER BY 1
    """

    # Trigger DDL for every trigger on a table or view
    TRIGGERS = """
        SELECT dbms_metadata.get_ddl ( 'TRIGGER', trigger_name, owner )
            FROM dba_triggers
            WHERE table_owner = :schema
                AND table_name = :name
            ORDER BY owner,
                trigger_name
    """

    # Object type lookup. Materialized views, packages and types win over
    # the table, package body or type body sharing their name.
    OBJECT_TYPE = """
        WITH x AS (
            SELECT object_type
                FROM dba_objects
                WHERE owner = :schema
                    AND object_name = :name
                ORDER BY CASE
                    WHEN object_type = 'MATERIALIZED VIEW' THEN 1
                    WHEN object_type = 'PACKAGE' THEN 1
                    WHEN object_type = 'TYPE' THEN 1
                    WHEN object_type = 'SYNONYM' THEN 1000
                    ELSE 10
                    END
        )
        SELECT object_type
            FROM x
            WHERE rownum = 1
    """

    # Schemas owning extractable objects
    SCHEMAS = f"""
        SELECT DISTINCT owner
            FROM dba_objects
            WHERE owner NOT IN ( {_EXCLUDED} )
                AND object_type IN ( {_EXTRACTED_TYPES} )
            ORDER BY owner
    """

    # Extractable objects in a schema, one row per object name
    SCHEMA_OBJECTS = f"""
        WITH objs AS (
            SELECT owner,
                    object_name,
                    object_type,
                    row_number () OVER (
                        PARTITION BY owner, object_name
                        ORDER BY CASE
                                WHEN object_type = 'MATERIALIZED VIEW' THEN 1
                                WHEN object_type = 'PACKAGE' THEN 1
                                WHEN object_type = 'TYPE' THEN 1
                                WHEN object_type = 'TABLE' THEN 2
                                WHEN object_type = 'VIEW' THEN 3
                                WHEN object_type = 'SEQUENCE' THEN 4
                                ELSE 10
                                END ) AS rn
                FROM dba_objects
                WHERE owner = :schema
                    AND object_type IN ( {_EXTRACTED_TYPES} )
                    AND object_name NOT LIKE 'SYS_PLSQL%'
                    AND object_name <> 'CREATE$JAVA$LOB$TABLE'
        )
        SELECT owner,
                object_name,
                object_type
            FROM objs
            WHERE rn = 1
            ORDER BY object_type,
                object_name
    """

    # Facet name to query mapping
    FACET_MAP: Dict[str, str] = {
        'COLUMN_COMMENTS': COLUMN_COMMENTS,
        'TABLE_COMMENTS': TABLE_COMMENTS,
        'MVIEW_COMMENTS': MVIEW_COMMENTS,
        'GRANTED_PRIVS': GRANTED_PRIVS,
        'NEEDED_PRIVS': NEEDED_PRIVS,
        'INDEXES': INDEXES,
        'SYNONYMS': SYNONYMS,
        'TRIGGERS': TRIGGERS,
    }

    @classmethod
    def get_query(cls, facet: str) -> str:
        """
        Get the query for a facet.

        Args:
            facet: Facet name, e.g. 'COLUMN_COMMENTS'

        Returns:
            The SQL query string for that facet

        Raises:
            KeyError: If the facet is not known
        """
        if facet not in cls.FACET_MAP:
            raise KeyError(f"Unknown facet: {facet}")
        return cls.FACET_MAP[facet]
