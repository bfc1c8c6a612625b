"""Tests for system view detection."""

from snowskills.catalog.views import extract_views, is_known_view


def test_extract_views_ordered_and_unique():
    sql = """
    SELECT * FROM snowflake.account_usage.query_history q
    JOIN SNOWFLAKE.ACCOUNT_USAGE.WAREHOUSE_METERING_HISTORY m ON TRUE
    JOIN SNOWFLAKE.ACCOUNT_USAGE.QUERY_HISTORY q2 ON TRUE
    """
    assert extract_views(sql) == [
        ("ACCOUNT_USAGE", "QUERY_HISTORY"),
        ("ACCOUNT_USAGE", "WAREHOUSE_METERING_HISTORY"),
    ]


def test_extract_views_information_schema_table_function():
    sql = "SELECT * FROM TABLE(<DATABASE_NAME>.INFORMATION_SCHEMA.QUERY_HISTORY(RESULT_LIMIT => 10))"
    assert extract_views(sql) == [("INFORMATION_SCHEMA", "QUERY_HISTORY")]


def test_extract_views_quoted_name():
    assert extract_views('SELECT 1 FROM MY_DB.INFORMATION_SCHEMA."TABLES"') == [
        ("INFORMATION_SCHEMA", "TABLES")
    ]


def test_is_known_view():
    assert is_known_view("ACCOUNT_USAGE", "LOGIN_HISTORY")
    assert is_known_view("account_usage", "login_history")
    assert not is_known_view("ACCOUNT_USAGE", "LOGIN_HISTORY_BY_USER")
    assert is_known_view("INFORMATION_SCHEMA", "LOGIN_HISTORY_BY_USER")


def test_is_known_view_extra_entries():
    assert is_known_view("ACCOUNT_USAGE", "CUSTOM_VIEW", extra=["custom_view"])
    assert is_known_view("ACCOUNT_USAGE", "CUSTOM_VIEW", extra=["ACCOUNT_USAGE.CUSTOM_VIEW"])
    assert not is_known_view("ACCOUNT_USAGE", "CUSTOM_VIEW", extra=["INFORMATION_SCHEMA.CUSTOM_VIEW"])


def test_task_lock_and_dynamic_table_views_are_known():
    for view in ("LOCK_WAIT_HISTORY", "COMPLETE_TASK_GRAPHS", "ALERT_HISTORY",
                 "DYNAMIC_TABLE_REFRESH_HISTORY", "PROJECTION_POLICIES"):
        assert is_known_view("ACCOUNT_USAGE", view), view
    for view in ("CURRENT_TASK_GRAPHS", "DYNAMIC_TABLE_REFRESH_HISTORY", "DATA_TRANSFER_HISTORY",
                 "EXTERNAL_TABLES", "EVENT_TABLES"):
        assert is_known_view("INFORMATION_SCHEMA", view), view
