"""Tests for SKILL.md parsing."""

import pytest

from snowskills.catalog.skill import (
    InputSpec,
    base_name,
    extract_placeholders,
    parse_bullets,
    parse_inputs,
    parse_queries,
    parse_related,
    parse_sections,
    parse_skill,
    split_front_matter,
)
from tests.conftest import SAMPLE_SKILL, write_skill


# =============================================================================
# Front-matter
# =============================================================================

def test_split_front_matter_returns_metadata_and_body():
    metadata, body = split_front_matter("---\nname: x\ndescription: y\n---\n# Title\n")
    assert metadata == {"name": "x", "description": "y"}
    assert body.strip() == "# Title"


def test_split_front_matter_without_front_matter():
    metadata, body = split_front_matter("# Just a title\n")
    assert metadata == {}
    assert body == "# Just a title\n"


def test_split_front_matter_unclosed():
    with pytest.raises(ValueError, match="never closed"):
        split_front_matter("---\nname: x\n# Title\n")


def test_split_front_matter_not_a_mapping():
    with pytest.raises(ValueError, match="mapping"):
        split_front_matter("---\n- a\n- b\n---\nbody\n")


def test_split_front_matter_invalid_yaml():
    with pytest.raises(ValueError, match="Invalid YAML"):
        split_front_matter("---\nname: [unclosed\n---\nbody\n")


# =============================================================================
# Sections and inputs
# =============================================================================

def test_parse_sections_ignores_headings_inside_fences():
    body = "## Goal\ntext\n```sql\n## not a heading\n```\n## Notes\nmore\n"
    sections = parse_sections(body)
    assert list(sections) == ["goal", "notes"]
    assert "## not a heading" in sections["goal"]
    assert sections["notes"] == "more"


def test_parse_inputs_qualifiers():
    text = "\n".join([
        "- `<LOOKBACK_HOURS>` (integer, default 24): how far back",
        "- `<USER_NAME>` (string, optional): one user",
        "- `<QUERY_ID>`: the query",
        "- `<ROLES>` (list, default ACCOUNTADMIN, SYSADMIN): roles",
        "- not an input line",
    ])
    inputs = parse_inputs(text)

    assert [spec.name for spec in inputs] == ["LOOKBACK_HOURS", "USER_NAME", "QUERY_ID", "ROLES"]

    lookback, user, query_id, roles = inputs
    assert lookback.type == "integer"
    assert lookback.default == "24"
    assert not lookback.required
    assert user.optional and user.default is None
    assert query_id.type == "string" and query_id.required
    assert query_id.description == "the query"
    assert roles.type == "list"
    assert roles.default == "ACCOUNTADMIN, SYSADMIN"


def test_parse_inputs_default_with_parentheses():
    inputs = parse_inputs(
        "- `<START_DATE>` (string, default DATEADD('day', -7, CURRENT_DATE())): window start (inclusive): ISO date"
    )

    assert len(inputs) == 1
    assert inputs[0].default == "DATEADD('day', -7, CURRENT_DATE())"
    assert inputs[0].description == "window start (inclusive): ISO date"


def test_input_spec_tokens():
    spec = InputSpec(name="USER_NAME", optional=True)
    assert spec.token == "<USER_NAME>"
    assert spec.is_null_token == "<USER_NAME_IS_NULL>"


# =============================================================================
# Queries and placeholders
# =============================================================================

def test_parse_queries_titles_and_lines():
    body = "\n".join([
        "## Queries",              # 1
        "",                        # 2
        "### 1. First",            # 3
        "```sql",                  # 4
        "SELECT 1",                # 5
        "```",                     # 6
        "```text",                 # 7
        "not sql",                 # 8
        "```",                     # 9
        "```sql",                  # 10
        "SELECT 2",                # 11
        "```",                     # 12
    ])
    queries = parse_queries(body)

    assert len(queries) == 2
    assert queries[0].title == "First"
    assert queries[0].sql == "SELECT 1"
    assert queries[0].line == 5
    # no heading of its own: inherits the last ### heading
    assert queries[1].title == "First"
    assert queries[1].line == 11


def test_parse_queries_default_title():
    queries = parse_queries("```sql\nSELECT 1\n```\n")
    assert queries[0].title == "Query 1"


def test_parse_queries_unclosed_block():
    with pytest.raises(ValueError, match="Unclosed sql block"):
        parse_queries("```sql\nSELECT 1\n")


def test_extract_placeholders_ordered_unique():
    sql = "WHERE a = <A> AND (<B_IS_NULL> OR b = <B>) AND c <> 1 AND d = <A>"
    assert extract_placeholders(sql) == ["A", "B_IS_NULL", "B"]


def test_base_name():
    assert base_name("USER_NAME_IS_NULL") == "USER_NAME"
    assert base_name("USER_NAME") is None
    assert base_name("_IS_NULL") is None


def test_parse_related_and_bullets():
    text = "- `stale-users`: dormant accounts\n- plain bullet\n* `slow-queries`\n"
    assert parse_related(text) == ["stale-users", "slow-queries"]
    assert parse_bullets("- one\n- [ ] two\n- [x] three\n\n") == ["one", "two", "three"]


# =============================================================================
# Full document
# =============================================================================

def test_parse_skill(tmp_path):
    path = write_skill(tmp_path, "security", "failed-logins", SAMPLE_SKILL)
    skill = parse_skill(path, "security")

    assert skill.name == "failed-logins"
    assert skill.description == "Investigate failed login attempts"
    assert skill.topic == "security"
    assert skill.title == "Failed logins"
    assert skill.goal == "Find out who is failing to log in."
    assert [q.title for q in skill.queries] == ["Failures by user", "Timeline"]
    assert skill.placeholders == ["LOOKBACK_HOURS", "USER_NAME_IS_NULL", "USER_NAME"]
    assert skill.views == [("ACCOUNT_USAGE", "LOGIN_HISTORY")]
    assert skill.output_format == ["Table of users with failure counts", "Verdict per user"]
    assert skill.related == ["stale-users"]
    assert "2 hours" in skill.notes
    assert skill.directory_name == "failed-logins"


def test_skill_input_lookup(failed_logins):
    assert failed_logins.input("USER_NAME").optional
    assert failed_logins.input("<lookback_hours>").type == "integer"
    assert failed_logins.input("MISSING") is None


def test_skill_summary(failed_logins):
    summary = failed_logins.summary()
    assert summary["name"] == "failed-logins"
    assert summary["views"] == ["ACCOUNT_USAGE.LOGIN_HISTORY"]
    assert summary["inputs"][0] == {"name": "LOOKBACK_HOURS", "type": "integer", "required": False, "default": "24"}
    assert summary["inputs"][1] == {"name": "USER_NAME", "type": "string", "required": False}


def test_parse_skill_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        parse_skill(tmp_path / "nope" / "SKILL.md")
