"""
Documentation hygiene checks for a skill library.

Checks front-matter, placeholder declarations, referenced system views and
cross-references between skills. Results are plain message lists split
into errors and warnings.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Iterable, List

from .library import SkillLibrary
from .skill import (
    GOAL_SECTION,
    INPUT_TYPES,
    Skill,
    base_name,
)
from .views import extract_views, is_known_view
from snowskills.common.config import slugify

logger = logging.getLogger(__name__)


@dataclass
class LintResult:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _location(skill: Skill, root) -> str:
    try:
        return os.path.relpath(skill.path, root)
    except ValueError:
        return str(skill.path)


def check_front_matter(skill: Skill, where: str, errors: list, warnings: list):
    """name/description must be present; name should be kebab-case and match its folder."""
    if not skill.name:
        errors.append(f"{where}: missing or empty 'name' in front-matter")
    if not skill.description:
        errors.append(f"{where}: missing or empty 'description' in front-matter")

    if skill.name:
        if slugify(skill.name) != skill.name:
            warnings.append(f"{where}: name '{skill.name}' is not kebab-case (expected '{slugify(skill.name)}')")
        if skill.name != skill.directory_name:
            warnings.append(
                f"{where}: name '{skill.name}' does not match its directory '{skill.directory_name}'"
            )


def check_structure(skill: Skill, where: str, errors: list, warnings: list):
    """Every skill needs at least one sql block; goal and output format are expected."""
    if not skill.queries:
        errors.append(f"{where}: no ```sql query blocks found")
    if not skill.sections.get(GOAL_SECTION):
        warnings.append(f"{where}: missing '## Goal' section")
    if not skill.output_format:
        warnings.append(f"{where}: missing or empty '## Output format' section")


def check_placeholders(skill: Skill, where: str, errors: list, warnings: list):
    """Every placeholder used in SQL must be declared under "Inputs to collect"."""
    declared = {spec.name for spec in skill.inputs}
    used = set()

    for query in skill.queries:
        for placeholder in query.placeholders:
            companion_of = base_name(placeholder)
            if placeholder in declared:
                used.add(placeholder)
            elif companion_of is not None:
                if companion_of not in declared:
                    errors.append(
                        f"{where}:{query.line}: <{placeholder}> used but <{companion_of}> "
                        f"is not declared in 'Inputs to collect'"
                    )
                    continue
                used.add(companion_of)
                spec = skill.input(companion_of)
                if not spec.optional:
                    warnings.append(
                        f"{where}:{query.line}: <{placeholder}> companion of a non-optional input "
                        f"is always FALSE; mark <{companion_of}> optional"
                    )
            else:
                errors.append(
                    f"{where}:{query.line}: placeholder <{placeholder}> is not declared in 'Inputs to collect'"
                )

    for spec in skill.inputs:
        if spec.type not in INPUT_TYPES:
            errors.append(
                f"{where}: input <{spec.name}> has unknown type '{spec.type}' "
                f"(expected one of: {', '.join(INPUT_TYPES)})"
            )
        if spec.type == "identifier" and spec.optional and spec.default is None:
            errors.append(
                f"{where}: identifier input <{spec.name}> is optional without a default; "
                f"an object name cannot be rendered as NULL"
            )
        if spec.name not in used:
            warnings.append(f"{where}: input <{spec.name}> is declared but never used in SQL")

    seen = set()
    for spec in skill.inputs:
        if spec.name in seen:
            errors.append(f"{where}: input <{spec.name}> is declared more than once")
        seen.add(spec.name)


def check_views(skill: Skill, where: str, errors: list, extra_views: Iterable[str] = ()):
    """Every referenced ACCOUNT_USAGE/INFORMATION_SCHEMA view must exist."""
    for query in skill.queries:
        for schema, view in extract_views(query.sql):
            if not is_known_view(schema, view, extra_views):
                errors.append(f"{where}:{query.line}: unknown {schema} view '{view}'")


def check_related(skill: Skill, where: str, library: SkillLibrary, errors: list):
    for name in skill.related:
        if name == skill.name:
            errors.append(f"{where}: lists itself under 'Related skills'")
        elif name not in library:
            errors.append(f"{where}: related skill '{name}' does not exist")


def lint_skill(skill: Skill, library: SkillLibrary, extra_views: Iterable[str] = ()) -> LintResult:
    """Run every check against one skill."""
    result = LintResult()
    where = _location(skill, library.root)

    check_front_matter(skill, where, result.errors, result.warnings)
    check_structure(skill, where, result.errors, result.warnings)
    check_placeholders(skill, where, result.errors, result.warnings)
    check_views(skill, where, result.errors, extra_views)
    check_related(skill, where, library, result.errors)

    return result


def lint_library(library: SkillLibrary, extra_views: Iterable[str] = ()) -> LintResult:
    """
    Lint a loaded library.

    Args:
        library: Library with load() already called
        extra_views: Additional view names to accept (VIEW or SCHEMA.VIEW)

    Returns:
        Combined LintResult
    """
    extra_views = list(extra_views)
    result = LintResult()

    for path, message in library.errors:
        result.errors.append(f"{os.path.relpath(path, library.root)}: failed to parse: {message}")

    for skill in library.duplicates:
        original = library.get(skill.name or skill.directory_name)
        result.errors.append(
            f"{_location(skill, library.root)}: duplicate skill name '{skill.name}' "
            f"(already defined in {_location(original, library.root)})"
        )

    if not len(library) and not library.errors:
        result.errors.append(f"{library.root}: no SKILL.md files found")

    for skill in library.list_skills():
        skill_result = lint_skill(skill, library, extra_views)
        result.errors.extend(skill_result.errors)
        result.warnings.extend(skill_result.warnings)

    logger.debug(f"Lint finished: {len(result.errors)} error(s), {len(result.warnings)} warning(s)")
    return result
