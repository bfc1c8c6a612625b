"""
Placeholder substitution for skill queries.

Fills <NAME> tokens with typed SQL literals and <NAME_IS_NULL> companions
with TRUE/FALSE. The rendered SQL is returned as text; nothing here
connects to Snowflake.
"""

import logging
import re
from pathlib import Path
from typing import Optional, List, Dict, Any

from .skill import (
    PLACEHOLDER_PATTERN,
    InputSpec,
    QueryBlock,
    Skill,
    base_name,
)

logger = logging.getLogger(__name__)


_IDENTIFIER_PART = r'(?:[A-Za-z_][A-Za-z0-9_$]*|"(?:[^"]|"")+")'
_IDENTIFIER = re.compile(rf'^{_IDENTIFIER_PART}(?:\.{_IDENTIFIER_PART})*$')
_INTEGER = re.compile(r'^[+-]?\d+$')
_NUMBER = re.compile(r'^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$')
_TRAILING_LIMIT = re.compile(r'\bLIMIT\s+(\d+)(?:\s+OFFSET\s+(\d+))?\s*$', re.IGNORECASE)

_TRUE_VALUES = {"true", "yes", "y", "1", "on"}
_FALSE_VALUES = {"false", "no", "n", "0", "off"}


def quote_string(value: str) -> str:
    """Quote a value as a SQL string literal (escape single quotes)."""
    escaped_value = value.replace("'", "''")
    return f"'{escaped_value}'"


def _signed(literal: str) -> str:
    """Parenthesize negative literals so that templates like -<N> stay valid SQL."""
    return f"({literal})" if literal.startswith("-") else literal


def format_value(spec: InputSpec, value: Any) -> str:
    """
    Render a single input value as SQL text according to its declared type.

    Raises:
        ValueError: If the value does not fit the type
    """
    if value is None:
        return "NULL"

    type_name = spec.type

    if type_name == "list":
        if isinstance(value, (list, tuple)):
            items = [str(v).strip() for v in value]
        else:
            items = [v.strip() for v in str(value).split(',')]
        items = [v for v in items if v]
        if not items:
            raise ValueError(f"Input '{spec.token}' expects at least one list item")
        return ", ".join(quote_string(v) for v in items)

    if type_name == "boolean":
        if isinstance(value, bool):
            return "TRUE" if value else "FALSE"
        text = str(value).strip().lower()
        if text in _TRUE_VALUES:
            return "TRUE"
        if text in _FALSE_VALUES:
            return "FALSE"
        raise ValueError(f"Input '{spec.token}' expects a boolean, got: {value}")

    text = str(value).strip()

    if type_name == "integer":
        if not _INTEGER.match(text):
            raise ValueError(f"Input '{spec.token}' expects an integer, got: {value}")
        return _signed(str(int(text)))

    if type_name == "number":
        if not _NUMBER.match(text):
            raise ValueError(f"Input '{spec.token}' expects a number, got: {value}")
        return _signed(text)

    if type_name == "identifier":
        if not _IDENTIFIER.match(text):
            raise ValueError(
                f"Input '{spec.token}' expects a Snowflake identifier "
                f"(e.g. MY_DB or MY_DB.PUBLIC), got: {value}"
            )
        return text

    if type_name == "string":
        return quote_string(str(value))

    raise ValueError(f"Input '{spec.token}' has unknown type '{type_name}'")


def _input_names(placeholders: List[str]) -> List[str]:
    """Map placeholders to input names (X_IS_NULL -> X), ordered and unique."""
    names = []
    for placeholder in placeholders:
        name = base_name(placeholder) or placeholder
        if name not in names:
            names.append(name)
    return names


def resolve_values(
    skill: Skill,
    variables: Dict[str, Any],
    defaults: Optional[Dict[str, Any]] = None,
    placeholders: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """
    Resolve input values for a set of placeholders.

    Precedence: explicit variables, project defaults, declared defaults.
    Undeclared placeholders are treated as required strings.

    Args:
        skill: Skill declaring the inputs
        variables: Values supplied by the caller
        defaults: Project-level defaults
        placeholders: Placeholders to resolve (default: every one in the skill)

    Returns:
        Mapping of input name to raw value (None when unset)

    Raises:
        ValueError: If a required input or an identifier has no value
    """
    variables = {k.upper(): v for k, v in variables.items()}
    defaults = {k.upper(): v for k, v in (defaults or {}).items()}

    known = [spec.name for spec in skill.inputs] + _input_names(skill.placeholders)
    unknown = sorted(set(variables) - set(known))
    if unknown:
        logger.warning(f"Ignoring variable(s) not used by {skill.name}: {', '.join(unknown)}")

    if placeholders is None:
        placeholders = skill.placeholders
    names = _input_names(placeholders)

    values = {}
    for name in names:
        spec = skill.input(name) or InputSpec(name=name)
        if name in variables:
            value = variables[name]
        elif name in defaults:
            value = defaults[name]
        else:
            value = spec.default

        if value is not None and isinstance(value, str) and not value.strip() and spec.type != "string":
            value = None

        if value is None and not spec.optional:
            raise ValueError(
                f"Required input '{spec.token}' not provided. "
                f"Use --var-{name} <value> to specify it."
            )
        if value is None and spec.type == "identifier":
            raise ValueError(
                f"Identifier input '{spec.token}' not provided. "
                f"An object name cannot be rendered as NULL."
            )
        values[name] = value

    return values


def substitute_placeholders(sql: str, skill: Skill, values: Dict[str, Any]) -> str:
    """
    Substitute placeholders in one SQL string.

    <NAME> becomes a typed literal (NULL when unset); <NAME_IS_NULL>
    becomes TRUE when NAME is unset and FALSE otherwise.
    """
    def replace(match):
        placeholder = match.group(1)
        companion_of = base_name(placeholder)

        if companion_of is not None and companion_of in values:
            result = "TRUE" if values[companion_of] is None else "FALSE"
            logger.debug(f"Substituted companion: {placeholder} = {result}")
            return result

        if placeholder not in values:
            # Not resolved for this query
            return match.group(0)

        spec = skill.input(placeholder) or InputSpec(name=placeholder)
        result = format_value(spec, values[placeholder])
        logger.debug(f"Substituted variable: {placeholder} = {result}")
        return result

    return PLACEHOLDER_PATTERN.sub(replace, sql)


def _strip_trailing_comments(sql: str) -> str:
    """Drop blank and '--' comment lines from the end of a statement."""
    lines = sql.rstrip().split('\n')
    while lines and (not lines[-1].strip() or lines[-1].strip().startswith('--')):
        lines.pop()
    return '\n'.join(lines)


def apply_limit_to_query(query: str, limit: int) -> str:
    """
    Cap the number of rows a rendered query returns.

    A LIMIT already closing the statement is lowered to limit, never raised;
    otherwise a LIMIT clause is appended. Trailing comment lines are dropped.
    """
    statement = _strip_trailing_comments(query).rstrip(';').rstrip()

    match = _TRAILING_LIMIT.search(statement)
    if match:
        existing = int(match.group(1))
        offset = f" OFFSET {match.group(2)}" if match.group(2) else ""
        statement = statement[:match.start()].rstrip()
        return f"{statement}\nLIMIT {min(existing, limit)}{offset};"

    return f"{statement}\nLIMIT {limit};"


def render_query(
    skill: Skill,
    query: QueryBlock,
    variables: Optional[Dict[str, Any]] = None,
    defaults: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
) -> str:
    """
    Render one query block of a skill.

    Args:
        skill: The skill the query belongs to
        query: Query block to render
        variables: Values supplied by the caller, keyed by placeholder name
        defaults: Project-level defaults (skills.yaml)
        limit: Optional row limit appended to the query

    Returns:
        SQL text with all placeholders substituted
    """
    values = resolve_values(skill, variables or {}, defaults, query.placeholders)
    if variables:
        logger.debug(f"Substituting {len(variables)} variable(s): {', '.join(variables.keys())}")

    rendered = substitute_placeholders(query.sql, skill, values)

    if limit is not None:
        if limit < 1:
            raise ValueError(f"Limit must be a positive integer, got: {limit}")
        rendered = apply_limit_to_query(rendered, limit)

    return rendered


def render_skill(
    skill: Skill,
    variables: Optional[Dict[str, Any]] = None,
    defaults: Optional[Dict[str, Any]] = None,
    query_number: Optional[int] = None,
    limit: Optional[int] = None,
) -> str:
    """
    Render one query (1-based query_number) or all queries of a skill.

    Multiple queries are separated by a comment line carrying their title.

    Raises:
        ValueError: If the skill has no queries or query_number is out of range
    """
    if not skill.queries:
        raise ValueError(f"Skill '{skill.name}' has no sql blocks to render")

    if query_number is not None:
        if not 1 <= query_number <= len(skill.queries):
            raise ValueError(
                f"Skill '{skill.name}' has {len(skill.queries)} queries, "
                f"got --query {query_number}"
            )
        return render_query(skill, skill.queries[query_number - 1], variables, defaults, limit)

    parts = []
    for number, query in enumerate(skill.queries, 1):
        sql = render_query(skill, query, variables, defaults, limit)
        parts.append(f"-- {number}. {query.title}\n{sql}")
    return "\n\n".join(parts)


def generate_output_filename(skill: Skill, query_number: Optional[int] = None, variables: Optional[dict] = None) -> str:
    """Generate an output filename for rendered SQL.

    When variables are provided, appends them as a suffix so that renders
    with different values don't overwrite each other.
    E.g., failed-logins --query 1 --var-lookback_hours 48 -> failed-logins_q1_LOOKBACK_HOURS-48.sql
    """
    stem = skill.name
    if query_number is not None:
        stem = f"{stem}_q{query_number}"
    if variables:
        suffix = "_".join(f"{k.upper()}-{v}" for k, v in sorted(variables.items()))
        stem = f"{stem}_{suffix}"
    return re.sub(r'[^A-Za-z0-9_.-]', '-', stem) + ".sql"


def resolve_output_path(skill: Skill, output_arg: str, query_number: Optional[int] = None, variables: Optional[dict] = None) -> Path:
    """
    Resolve the file to write rendered SQL to.

    A directory (existing, or ending in '/') gets a generated filename;
    anything else is used as the file path.
    """
    output_path = Path(output_arg)

    if output_path.is_dir() or output_arg.endswith('/'):
        output_dir = output_path.resolve()
        output_dir.mkdir(parents=True, exist_ok=True)
        return output_dir / generate_output_filename(skill, query_number, variables)

    output_path = output_path.resolve()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    return output_path
