"""Skill library discovery and lookup.

A library is a directory of topic folders, each holding skill directories
with a SKILL.md file:

    skills/
    ├── security/
    │   ├── failed-logins/SKILL.md
    │   └── privileged-grants/SKILL.md
    └── performance/
        └── slow-queries/SKILL.md
"""

import logging
from pathlib import Path
from typing import Optional, List, Dict, Any

from .skill import Skill, parse_skill
from snowskills.common.config import save_index

logger = logging.getLogger(__name__)


SKILL_FILENAME = "SKILL.md"


class SkillLibrary:
    """Collection of skills loaded from a directory tree.

    Load failures do not abort loading; they are collected in ``errors``
    as (path, message) pairs so that lint can report them.

    Example:
        library = SkillLibrary(Path("skills"))
        library.load()
        skill = library.get("failed-logins")
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self._skills: Dict[str, Skill] = {}
        self.errors: List[tuple] = []
        self.duplicates: List[Skill] = []

    def load(self) -> int:
        """
        Load every SKILL.md under the root.

        Returns:
            Number of skills loaded

        Raises:
            FileNotFoundError: If the root directory does not exist
        """
        if not self.root.is_dir():
            raise FileNotFoundError(
                f"Skills directory does not exist: {self.root}\n"
                f"Use --dir or set SNOWSKILLS_DIR to point at a skills library."
            )

        self._skills = {}
        self.errors = []
        self.duplicates = []

        for skill_md in sorted(self.root.rglob(SKILL_FILENAME)):
            relative = skill_md.relative_to(self.root)
            topic = relative.parts[0] if len(relative.parts) > 1 else ""

            try:
                skill = parse_skill(skill_md, topic)
            except (ValueError, UnicodeDecodeError) as e:
                logger.error(f"Failed to load skill from {skill_md}: {e}")
                self.errors.append((skill_md, str(e)))
                continue

            if not skill.name:
                # Still reachable for lint, keyed by directory
                key = skill.directory_name
            else:
                key = skill.name

            if key in self._skills:
                logger.warning(f"Duplicate skill name '{key}' in {skill_md}")
                self.duplicates.append(skill)
                continue

            self._skills[key] = skill
            logger.debug(f"Loaded skill: {key} ({topic or 'no topic'})")

        logger.debug(f"Loaded {len(self._skills)} skill(s) from {self.root}")
        return len(self._skills)

    def __len__(self) -> int:
        return len(self._skills)

    def __contains__(self, name: str) -> bool:
        return name in self._skills

    def get(self, name: str) -> Optional[Skill]:
        return self._skills.get(name)

    def require(self, name: str) -> Skill:
        """Get a skill by name or raise with the closest matches."""
        skill = self.get(name)
        if skill is None:
            matches = [s.name for s in self.search(name)][:5]
            hint = f"\nDid you mean: {', '.join(matches)}" if matches else ""
            raise FileNotFoundError(f"Skill not found: {name}{hint}")
        return skill

    def list_skills(self, topic: Optional[str] = None) -> List[Skill]:
        """All skills, optionally restricted to one topic, sorted by topic and name."""
        skills = [s for s in self._skills.values() if topic is None or s.topic == topic]
        return sorted(skills, key=lambda s: (s.topic, s.name))

    def topics(self) -> List[str]:
        return sorted({s.topic for s in self._skills.values()})

    def search(self, text: str) -> List[Skill]:
        """Skills whose name, description or title contains every word of text."""
        words = text.lower().replace('-', ' ').split()
        results = []
        for skill in self.list_skills():
            haystack = f"{skill.name.replace('-', ' ')} {skill.description} {skill.title}".lower()
            if all(word in haystack for word in words):
                results.append(skill)
        return results

    def get_descriptions(self, format: str = "list", topic: Optional[str] = None) -> str:
        """Get formatted skill descriptions for system prompt injection.

        Args:
            format: "list" for bullet points, "table" for a markdown table
            topic: Restrict to one topic

        Returns:
            Formatted string of skill descriptions
        """
        skills = self.list_skills(topic)
        if not skills:
            return "No skills available."

        if format == "table":
            lines = ["| Topic | Skill | Description |", "|-------|-------|-------------|"]
            for skill in skills:
                lines.append(f"| {skill.topic} | {skill.name} | {skill.description} |")
            return "\n".join(lines)

        lines = []
        for skill in skills:
            lines.append(f"- {skill.name} [{skill.topic}]: {skill.description}")
        return "\n".join(lines)

    def build_index(self) -> Dict[str, Any]:
        """Index of all skills grouped by topic."""
        index = {"skills_dir": str(self.root), "topics": {}}
        for topic in self.topics():
            entries = []
            for skill in self.list_skills(topic):
                entry = skill.summary()
                entry["path"] = skill.path.relative_to(self.root).as_posix()
                entries.append(entry)
            index["topics"][topic or "_root"] = entries
        return index

    def save_index(self, index_path: Path) -> Dict[str, Any]:
        index = self.build_index()
        save_index(index, index_path)
        logger.info(f"Index written to {index_path}")
        return index
