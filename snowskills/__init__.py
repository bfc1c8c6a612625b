"""
Snowflake Diagnostic Skills

Markdown skills pairing diagnostic goals with SQL templates against
Snowflake ACCOUNT_USAGE and INFORMATION_SCHEMA views, plus tooling:
- catalog: load, lint, index and render skills
- common: project configuration
"""

__version__ = '1.0.0'
