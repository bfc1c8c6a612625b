"""
Known Snowflake system views.

Names of the SNOWFLAKE.ACCOUNT_USAGE views and the INFORMATION_SCHEMA
views/table functions that skill queries may reference.
"""

import re
from typing import Iterable, List, Tuple


ACCOUNT_USAGE = "ACCOUNT_USAGE"
INFORMATION_SCHEMA = "INFORMATION_SCHEMA"

ACCOUNT_USAGE_VIEWS = frozenset({
    # Object metadata
    "COLUMNS",
    "DATABASES",
    "FILE_FORMATS",
    "FUNCTIONS",
    "OBJECT_DEPENDENCIES",
    "PIPES",
    "PROCEDURES",
    "REFERENTIAL_CONSTRAINTS",
    "SCHEMATA",
    "SEQUENCES",
    "STAGES",
    "TABLES",
    "TABLE_CONSTRAINTS",
    "VIEWS",
    "EVENT_TABLES",
    "EXTERNAL_TABLES",
    "HYBRID_TABLES",
    # Users, roles and access
    "ACCESS_HISTORY",
    "GRANTS_TO_ROLES",
    "GRANTS_TO_USERS",
    "LOGIN_HISTORY",
    "NETWORK_POLICIES",
    "NETWORK_RULES",
    "PASSWORD_POLICIES",
    "SESSION_POLICIES",
    "EXTERNAL_ACCESS_HISTORY",
    "ROLES",
    "SESSIONS",
    "USERS",
    # Governance
    "AGGREGATION_POLICIES",
    "MASKING_POLICIES",
    "POLICY_REFERENCES",
    "PROJECTION_POLICIES",
    "ROW_ACCESS_POLICIES",
    "TAGS",
    "TAG_REFERENCES",
    # Query activity
    "QUERY_ACCELERATION_ELIGIBLE",
    "QUERY_ATTRIBUTION_HISTORY",
    "QUERY_HISTORY",
    "LOCK_WAIT_HISTORY",
    # Compute and cost
    "AUTOMATIC_CLUSTERING_HISTORY",
    "DATA_TRANSFER_HISTORY",
    "DATABASE_REPLICATION_USAGE_HISTORY",
    "EVENT_USAGE_HISTORY",
    "MATERIALIZED_VIEW_REFRESH_HISTORY",
    "METERING_DAILY_HISTORY",
    "METERING_HISTORY",
    "PIPE_USAGE_HISTORY",
    "QUERY_ACCELERATION_HISTORY",
    "REPLICATION_USAGE_HISTORY",
    "REPLICATION_GROUP_USAGE_HISTORY",
    "SEARCH_OPTIMIZATION_HISTORY",
    "SERVERLESS_TASK_HISTORY",
    "WAREHOUSE_EVENTS_HISTORY",
    "WAREHOUSE_LOAD_HISTORY",
    "WAREHOUSE_METERING_HISTORY",
    # Storage
    "DATABASE_STORAGE_USAGE_HISTORY",
    "STAGE_STORAGE_USAGE_HISTORY",
    "STORAGE_USAGE",
    "TABLE_STORAGE_METRICS",
    # Loading and pipelines
    "ALERT_HISTORY",
    "COMPLETE_TASK_GRAPHS",
    "COPY_HISTORY",
    "DYNAMIC_TABLE_REFRESH_HISTORY",
    "LOAD_HISTORY",
    "TASK_HISTORY",
    "TASK_VERSIONS",
})

INFORMATION_SCHEMA_VIEWS = frozenset({
    # Views
    "APPLICABLE_ROLES",
    "COLUMNS",
    "DATABASES",
    "ENABLED_ROLES",
    "EVENT_TABLES",
    "EXTERNAL_TABLES",
    "FILE_FORMATS",
    "FUNCTIONS",
    "LOAD_HISTORY",
    "OBJECT_PRIVILEGES",
    "PIPES",
    "PROCEDURES",
    "REFERENTIAL_CONSTRAINTS",
    "SCHEMATA",
    "SEQUENCES",
    "STAGES",
    "TABLES",
    "TABLE_CONSTRAINTS",
    "TABLE_PRIVILEGES",
    "TABLE_STORAGE_METRICS",
    "USAGE_PRIVILEGES",
    "VIEWS",
    # Table functions
    "ALERT_HISTORY",
    "AUTOMATIC_CLUSTERING_HISTORY",
    "COMPLETE_TASK_GRAPHS",
    "COPY_HISTORY",
    "CURRENT_TASK_GRAPHS",
    "DATABASE_REFRESH_HISTORY",
    "DATABASE_STORAGE_USAGE_HISTORY",
    "DATA_TRANSFER_HISTORY",
    "DYNAMIC_TABLES",
    "DYNAMIC_TABLE_GRAPH_HISTORY",
    "DYNAMIC_TABLE_REFRESH_HISTORY",
    "EXTERNAL_FUNCTIONS_HISTORY",
    "LOGIN_HISTORY",
    "LOGIN_HISTORY_BY_USER",
    "MATERIALIZED_VIEW_REFRESH_HISTORY",
    "PIPE_USAGE_HISTORY",
    "POLICY_REFERENCES",
    "QUERY_HISTORY",
    "QUERY_HISTORY_BY_SESSION",
    "QUERY_HISTORY_BY_USER",
    "QUERY_HISTORY_BY_WAREHOUSE",
    "REPLICATION_GROUP_REFRESH_HISTORY",
    "REPLICATION_USAGE_HISTORY",
    "SEARCH_OPTIMIZATION_HISTORY",
    "SERVERLESS_TASK_HISTORY",
    "STAGE_STORAGE_USAGE_HISTORY",
    "TAG_REFERENCES",
    "TAG_REFERENCES_ALL_COLUMNS",
    "TASK_DEPENDENTS",
    "TASK_HISTORY",
    "WAREHOUSE_LOAD_HISTORY",
    "WAREHOUSE_METERING_HISTORY",
})

KNOWN_VIEWS = {
    ACCOUNT_USAGE: ACCOUNT_USAGE_VIEWS,
    INFORMATION_SCHEMA: INFORMATION_SCHEMA_VIEWS,
}

# Matches e.g. SNOWFLAKE.ACCOUNT_USAGE.QUERY_HISTORY or
# <DATABASE_NAME>.INFORMATION_SCHEMA.TABLES
_VIEW_PATTERN = re.compile(
    r'\b(ACCOUNT_USAGE|INFORMATION_SCHEMA)\s*\.\s*"?([A-Za-z_][A-Za-z0-9_]*)"?',
    re.IGNORECASE,
)


def extract_views(sql: str) -> List[Tuple[str, str]]:
    """
    Find system views referenced in SQL text.

    Returns:
        Ordered, de-duplicated list of (schema, view) pairs, upper-cased
    """
    found = []
    for match in _VIEW_PATTERN.finditer(sql):
        pair = (match.group(1).upper(), match.group(2).upper())
        if pair not in found:
            found.append(pair)
    return found


def is_known_view(schema: str, view: str, extra: Iterable[str] = ()) -> bool:
    """
    Check a view name against the known catalog.

    Entries in extra may be bare names (VIEW) or qualified (SCHEMA.VIEW).
    """
    schema = schema.upper()
    view = view.upper()
    extra = {e.upper() for e in extra}
    if view in extra or f"{schema}.{view}" in extra:
        return True
    return view in KNOWN_VIEWS.get(schema, frozenset())
