"""
SKILL.md parsing.

A skill file looks like:

    ---
    name: failed-logins
    description: Investigate failed login attempts
    ---

    # Failed logins

    ## Goal
    ...

    ## Inputs to collect
    - `<LOOKBACK_HOURS>` (integer, default 24): how far back to look
    - `<USER_NAME>` (string, optional): restrict to a single user

    ## Queries

    ### 1. Failures by user
    ```sql
    SELECT ... WHERE (<USER_NAME_IS_NULL> OR USER_NAME = <USER_NAME>)
    ```

    ## Output format
    - Table of users with failure counts

    ## Related skills
    - `stale-users`: follow up on dormant accounts
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List, Dict, Any, Tuple

import yaml

from .views import extract_views

logger = logging.getLogger(__name__)


INPUT_TYPES = ("string", "integer", "number", "boolean", "identifier", "list")
IS_NULL_SUFFIX = "_IS_NULL"

# Section titles (matched lower-case)
GOAL_SECTION = "goal"
INPUTS_SECTION = "inputs to collect"
OUTPUT_SECTION = "output format"
NOTES_SECTION = "notes"
RELATED_SECTION = "related skills"

PLACEHOLDER_PATTERN = re.compile(r'<([A-Z][A-Z0-9_]*)>')

_INPUT_LINE = re.compile(
    r'^\s*[-*]\s+`?<([A-Z][A-Z0-9_]*)>`?\s*(?:\((.*?)\)(?=\s*(?::|$)))?\s*:?\s*(.*)$'
)
_RELATED_LINE = re.compile(r'^\s*[-*]\s+`([a-z0-9][a-z0-9-]*)`')
_BULLET_LINE = re.compile(r'^\s*[-*]\s+(?:\[[ xX]\]\s+)?(.*)$')


@dataclass
class InputSpec:
    """One placeholder declared under "Inputs to collect"."""
    name: str
    type: str = "string"
    optional: bool = False
    default: Optional[str] = None
    description: str = ""

    @property
    def required(self) -> bool:
        """True when a value must be collected before rendering."""
        return not self.optional and self.default is None

    @property
    def token(self) -> str:
        return f"<{self.name}>"

    @property
    def is_null_token(self) -> str:
        return f"<{self.name}{IS_NULL_SUFFIX}>"


@dataclass
class QueryBlock:
    """A fenced sql block and the heading it sits under."""
    title: str
    sql: str
    line: int

    @property
    def placeholders(self) -> List[str]:
        return extract_placeholders(self.sql)


@dataclass
class Skill:
    """A parsed SKILL.md document."""
    name: str
    description: str
    topic: str
    path: Path
    title: str = ""
    goal: str = ""
    inputs: List[InputSpec] = field(default_factory=list)
    queries: List[QueryBlock] = field(default_factory=list)
    output_format: List[str] = field(default_factory=list)
    notes: str = ""
    related: List[str] = field(default_factory=list)
    sections: Dict[str, str] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def directory_name(self) -> str:
        return self.path.parent.name

    @property
    def placeholders(self) -> List[str]:
        """All placeholder names used across queries, in order of appearance."""
        names = []
        for query in self.queries:
            for name in query.placeholders:
                if name not in names:
                    names.append(name)
        return names

    @property
    def views(self) -> List[Tuple[str, str]]:
        """All (schema, view) pairs referenced across queries."""
        views = []
        for query in self.queries:
            for pair in extract_views(query.sql):
                if pair not in views:
                    views.append(pair)
        return views

    def input(self, name: str) -> Optional[InputSpec]:
        """Look up a declared input by placeholder name."""
        name = name.strip('<>').upper()
        for spec in self.inputs:
            if spec.name == name:
                return spec
        return None

    def summary(self) -> Dict[str, Any]:
        """Compact description used for indexes."""
        return {
            "name": self.name,
            "description": self.description,
            "path": self.path.as_posix(),
            "inputs": [
                {
                    "name": spec.name,
                    "type": spec.type,
                    "required": spec.required,
                    **({"default": spec.default} if spec.default is not None else {}),
                }
                for spec in self.inputs
            ],
            "queries": [query.title for query in self.queries],
            "views": [f"{schema}.{view}" for schema, view in self.views],
            "related": list(self.related),
        }


def extract_placeholders(sql: str) -> List[str]:
    """Return placeholder names in SQL text, ordered and de-duplicated."""
    names = []
    for name in PLACEHOLDER_PATTERN.findall(sql):
        if name not in names:
            names.append(name)
    return names


def base_name(placeholder: str) -> Optional[str]:
    """Return X for an X_IS_NULL companion, None for a plain placeholder."""
    if placeholder.endswith(IS_NULL_SUFFIX) and len(placeholder) > len(IS_NULL_SUFFIX):
        return placeholder[:-len(IS_NULL_SUFFIX)]
    return None


def split_front_matter(text: str) -> Tuple[Dict[str, Any], str]:
    """
    Split YAML front-matter from the document body.

    Returns:
        (metadata, body). metadata is empty when the file has no front-matter.

    Raises:
        ValueError: If the front-matter is not closed, not YAML, or not a mapping
    """
    if not text.startswith("---"):
        return {}, text

    lines = text.split("\n")
    end_idx = None
    for i, line in enumerate(lines[1:], 1):
        if line.strip() == "---":
            end_idx = i
            break

    if end_idx is None:
        raise ValueError("Front-matter opened with '---' but never closed")

    frontmatter = "\n".join(lines[1:end_idx])
    try:
        metadata = yaml.safe_load(frontmatter) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML front-matter: {e}") from e

    if not isinstance(metadata, dict):
        raise ValueError("Front-matter must be a YAML mapping")

    body = "\n".join(lines[end_idx + 1:])
    return metadata, body


def _iter_outside_fences(body: str):
    """Yield (line_number, line, in_fence) for each body line."""
    in_fence = False
    for i, line in enumerate(body.split("\n"), 1):
        if line.strip().startswith("```"):
            yield i, line, True
            in_fence = not in_fence
            continue
        yield i, line, in_fence


def parse_title(body: str) -> str:
    for _, line, in_fence in _iter_outside_fences(body):
        if not in_fence and line.startswith("# "):
            return line[2:].strip()
    return ""


def parse_sections(body: str) -> Dict[str, str]:
    """Split the body into ## sections keyed by lower-cased heading."""
    sections = {}
    current = None
    buffer = []

    for _, line, in_fence in _iter_outside_fences(body):
        if not in_fence and line.startswith("## "):
            if current is not None:
                sections[current] = "\n".join(buffer).strip()
            current = line[3:].strip().lower()
            buffer = []
        elif current is not None:
            buffer.append(line)

    if current is not None:
        sections[current] = "\n".join(buffer).strip()

    return sections


def _parse_qualifiers(text: str) -> Tuple[str, bool, Optional[str]]:
    """Parse "(integer, optional, default 24)" style qualifiers."""
    type_name = "string"
    optional = False
    default = None

    # default may itself contain commas, so it always comes last
    match = re.search(r'\bdefault\s+(.+)$', text, re.IGNORECASE)
    if match:
        default = match.group(1).strip().strip('`')
        text = text[:match.start()]

    for part in text.split(','):
        part = part.strip().lower()
        if not part:
            continue
        if part == "optional":
            optional = True
        elif part == "required":
            optional = False
        else:
            type_name = part

    return type_name, optional, default


def parse_inputs(text: str) -> List[InputSpec]:
    """Parse the bullets of an "Inputs to collect" section."""
    inputs = []
    for line in text.split("\n"):
        match = _INPUT_LINE.match(line)
        if not match:
            continue
        name, qualifiers, description = match.groups()
        type_name, optional, default = _parse_qualifiers(qualifiers or "")
        inputs.append(InputSpec(
            name=name,
            type=type_name,
            optional=optional,
            default=default,
            description=description.strip(),
        ))
    return inputs


def parse_queries(body: str) -> List[QueryBlock]:
    """Collect every fenced sql block with the nearest ### heading as title."""
    queries = []
    heading = None
    collecting = False
    start_line = 0
    sql_lines = []

    for number, line, in_fence in _iter_outside_fences(body):
        stripped = line.strip()

        if collecting:
            if stripped.startswith("```"):
                title = heading or f"Query {len(queries) + 1}"
                queries.append(QueryBlock(title=title, sql="\n".join(sql_lines).strip(), line=start_line))
                collecting = False
                sql_lines = []
            else:
                sql_lines.append(line)
            continue

        if stripped.startswith("```") and stripped[3:].strip().lower() == "sql" and in_fence:
            collecting = True
            start_line = number + 1
            continue

        if not in_fence and line.startswith("### "):
            # "### 2. Failures by IP" -> "Failures by IP"
            heading = re.sub(r'^\d+[.)]\s*', '', line[4:].strip())
        elif not in_fence and line.startswith("## "):
            heading = None

    if collecting:
        raise ValueError(f"Unclosed sql block starting at body line {start_line - 1}")

    return queries


def parse_bullets(text: str) -> List[str]:
    items = []
    for line in text.split("\n"):
        match = _BULLET_LINE.match(line)
        if match and match.group(1).strip():
            items.append(match.group(1).strip())
    return items


def parse_related(text: str) -> List[str]:
    """Skill names listed under "Related skills"."""
    related = []
    for line in text.split("\n"):
        match = _RELATED_LINE.match(line)
        if match and match.group(1) not in related:
            related.append(match.group(1))
    return related


def parse_skill(path: Path, topic: str = "") -> Skill:
    """
    Parse a SKILL.md file.

    Args:
        path: Path to the SKILL.md file
        topic: Topic folder the skill lives in

    Returns:
        Parsed Skill

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the front-matter or a sql block is malformed
    """
    if not path.exists():
        raise FileNotFoundError(f"Skill file not found: {path}")

    text = path.read_text(encoding="utf-8")
    metadata, body = split_front_matter(text)
    sections = parse_sections(body)

    name = metadata.get("name")
    description = metadata.get("description")

    skill = Skill(
        name=str(name).strip() if name is not None else "",
        description=str(description).strip() if description is not None else "",
        topic=topic,
        path=path,
        title=parse_title(body),
        goal=sections.get(GOAL_SECTION, ""),
        inputs=parse_inputs(sections.get(INPUTS_SECTION, "")),
        queries=parse_queries(body),
        output_format=parse_bullets(sections.get(OUTPUT_SECTION, "")),
        notes=sections.get(NOTES_SECTION, ""),
        related=parse_related(sections.get(RELATED_SECTION, "")),
        sections=sections,
        metadata=metadata,
    )
    logger.debug(f"Parsed skill {skill.name or path}: {len(skill.queries)} queries, {len(skill.inputs)} inputs")
    return skill
