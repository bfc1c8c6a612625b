"""Project configuration management.

Handles reading skills.yaml, loading .env and resolving the skills root.
"""

import os
import re
from pathlib import Path
from typing import Optional
import yaml


# Project root and config paths
PACKAGE_ROOT = Path(__file__).parent.parent
PROJECT_ROOT = PACKAGE_ROOT.parent
# Bundled library, shipped as package data
SKILLS_DIR = PACKAGE_ROOT / "skills"
CONFIG_PATH = PROJECT_ROOT / "skills.yaml"
ENV_PATH = PROJECT_ROOT / ".env"

# Environment override for the skills root
SKILLS_DIR_ENV = "SNOWSKILLS_DIR"


def read_env_file(env_path: Path) -> dict:
    """Parse KEY=value lines; blank lines and '#' comments are skipped."""
    values = {}
    for raw in env_path.read_text().splitlines():
        line = raw.strip()
        if not line or line.startswith('#') or '=' not in line:
            continue
        key, value = (part.strip() for part in line.split('=', 1))
        if len(value) >= 2 and value[0] in ('"', "'") and value[-1] == value[0]:
            value = value[1:-1]
        values[key] = value
    return values


def load_env(env_path: Optional[Path] = None):
    """Load .env into the environment; variables already set are kept."""
    env_path = env_path or ENV_PATH
    if not env_path.exists():
        return

    for key, value in read_env_file(env_path).items():
        os.environ.setdefault(key, value)


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load project configuration from skills.yaml."""
    config_path = config_path or CONFIG_PATH
    if not config_path.exists():
        return {"skills_dir": None, "extra_views": [], "defaults": {}}

    with open(config_path, "r") as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(
            f"Invalid configuration in {config_path}\n"
            f"Expected a mapping at the top level."
        )

    # Ensure keys exist
    config.setdefault("skills_dir", None)
    if config.get("extra_views") is None:
        config["extra_views"] = []
    if config.get("defaults") is None:
        config["defaults"] = {}

    # Placeholder names are matched upper-case
    config["defaults"] = {str(k).upper(): v for k, v in config["defaults"].items()}
    config["extra_views"] = [str(v).upper() for v in config["extra_views"]]

    return config


def get_skills_dir(config: Optional[dict] = None, override: Optional[str] = None) -> Path:
    """
    Resolve the skills root directory.

    Precedence: explicit override, SNOWSKILLS_DIR, skills_dir from
    skills.yaml (relative to the project root), then the bundled skills/.
    """
    if override:
        return Path(override).resolve()

    load_env()
    env_dir = os.getenv(SKILLS_DIR_ENV)
    if env_dir:
        return Path(env_dir).resolve()

    if config and config.get("skills_dir"):
        path = Path(config["skills_dir"])
        if not path.is_absolute():
            path = PROJECT_ROOT / path
        return path.resolve()

    return SKILLS_DIR


def save_index(index: dict, index_path: Path) -> None:
    """Save a skill index as YAML."""
    index_path.parent.mkdir(parents=True, exist_ok=True)

    with open(index_path, "w") as f:
        f.write("# Skill Index\n")
        f.write("# Generated from skills/**/SKILL.md. Do not edit by hand.\n")
        f.write("#\n")
        f.write("# Usage:\n")
        f.write("#   python -m snowskills.catalog index --output <path>\n")
        f.write("\n")
        yaml.dump(index, f, default_flow_style=False, sort_keys=False, allow_unicode=True)


def slugify(text: str) -> str:
    """Convert text to a filename-safe slug."""
    text = text.lower()
    text = re.sub(r'[\s_]+', '-', text)
    text = re.sub(r'[^a-z0-9-]', '', text)
    text = re.sub(r'-+', '-', text)
    return text.strip('-')
