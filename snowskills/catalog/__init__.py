"""
Skill catalog tooling

This package provides tools for working with the skill library:
- library: discover and look up SKILL.md files
- render: substitute <NAME> placeholders into query templates
- lint: documentation hygiene checks

Usage as CLI:
    python -m snowskills.catalog <list|show|render|lint|index> [options]

Usage programmatically:
    from snowskills.catalog import SkillLibrary, lint_library, render_skill
"""

from .library import SkillLibrary
from .lint import LintResult, lint_library, lint_skill
from .render import render_query, render_skill
from .skill import InputSpec, QueryBlock, Skill, parse_skill
from .views import extract_views, is_known_view
from .cli import main as cli_main

__all__ = [
    'SkillLibrary',
    'LintResult',
    'lint_library',
    'lint_skill',
    'render_query',
    'render_skill',
    'InputSpec',
    'QueryBlock',
    'Skill',
    'parse_skill',
    'extract_views',
    'is_known_view',
    'cli_main',
]
