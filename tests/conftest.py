"""Shared test fixtures: small skill trees written to tmp_path."""

import textwrap
from pathlib import Path

import pytest

from snowskills.catalog.library import SkillLibrary


SAMPLE_SKILL = textwrap.dedent("""\
    ---
    name: failed-logins
    description: Investigate failed login attempts
    ---

    # Failed logins

    ## Goal
    Find out who is failing to log in.

    ## Inputs to collect
    - `<LOOKBACK_HOURS>` (integer, default 24): how far back to look
    - `<USER_NAME>` (string, optional): restrict to a single user

    ## Queries

    ### 1. Failures by user
    ```sql
    SELECT USER_NAME, COUNT(*) AS FAILURES
    FROM SNOWFLAKE.ACCOUNT_USAGE.LOGIN_HISTORY
    WHERE EVENT_TIMESTAMP >= DATEADD('hour', -<LOOKBACK_HOURS>, CURRENT_TIMESTAMP())
      AND IS_SUCCESS = 'NO'
      AND (<USER_NAME_IS_NULL> OR USER_NAME = <USER_NAME>)
    GROUP BY USER_NAME;
    ```

    ### 2. Timeline
    ```sql
    SELECT DATE_TRUNC('hour', EVENT_TIMESTAMP) AS HOUR, COUNT(*) AS FAILURES
    FROM SNOWFLAKE.ACCOUNT_USAGE.LOGIN_HISTORY
    WHERE EVENT_TIMESTAMP >= DATEADD('hour', -<LOOKBACK_HOURS>, CURRENT_TIMESTAMP())
    GROUP BY HOUR
    -- newest last
    ```

    ## Output format
    - Table of users with failure counts
    - [ ] Verdict per user

    ## Notes
    - LOGIN_HISTORY lags by up to 2 hours.

    ## Related skills
    - `stale-users`: check dormant accounts
""")


STALE_USERS_SKILL = textwrap.dedent("""\
    ---
    name: stale-users
    description: Find users who have not logged in recently
    ---

    # Stale users

    ## Goal
    Find dormant accounts.

    ## Inputs to collect
    - `<INACTIVE_DAYS>` (integer, default 90): days without login
    - `<DATABASE_NAME>` (identifier): database for the fallback query

    ## Queries

    ### 1. Stale users
    ```sql
    SELECT NAME
    FROM SNOWFLAKE.ACCOUNT_USAGE.USERS
    WHERE LAST_SUCCESS_LOGIN < DATEADD('day', -<INACTIVE_DAYS>, CURRENT_TIMESTAMP())
    ```

    ### 2. Fallback
    ```sql
    SELECT * FROM <DATABASE_NAME>.INFORMATION_SCHEMA.TABLES
    ```

    ## Output format
    - Table of stale users

    ## Related skills
    - `failed-logins`: failures for the same users
""")


def write_skill(root: Path, topic: str, directory: str, text: str) -> Path:
    """Write a SKILL.md under root/topic/directory and return its path."""
    skill_dir = root / topic / directory
    skill_dir.mkdir(parents=True, exist_ok=True)
    path = skill_dir / "SKILL.md"
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def skills_root(tmp_path):
    root = tmp_path / "skills"
    write_skill(root, "security", "failed-logins", SAMPLE_SKILL)
    write_skill(root, "security", "stale-users", STALE_USERS_SKILL)
    return root


@pytest.fixture
def library(skills_root):
    library = SkillLibrary(skills_root)
    library.load()
    return library


@pytest.fixture
def failed_logins(library):
    return library.get("failed-logins")


@pytest.fixture
def stale_users(library):
    return library.get("stale-users")
