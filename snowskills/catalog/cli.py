#!/usr/bin/env python3
"""
CLI entry point for the skill catalog.

This module provides a unified command-line interface for skill operations:
- list: List skills, optionally by topic
- show: Print a skill's goal, inputs, queries and output checklist
- render: Fill placeholders and print the SQL (never executes it)
- lint: Check the library for documentation hygiene issues
- index: Write a YAML index of the library

Usage:
    python -m snowskills.catalog [--debug] [--dir <skills-dir>] <command> [options]

Template Variables:
  Queries use <NAME> placeholders. Provide values with --var-<name> <value>:

    python -m snowskills.catalog render failed-logins --var-lookback_hours 48

  Optional filters are written (<NAME_IS_NULL> OR col = <NAME>) and are
  disabled (TRUE) when no value is given.
"""

import argparse
import logging
import sys
import traceback
from pathlib import Path
from typing import List, Dict, Tuple

from .library import SkillLibrary
from .lint import lint_library
from .render import render_skill, resolve_output_path
from snowskills.common.config import get_skills_dir, load_config

# Configure logger
logger = logging.getLogger(__name__)


# ANSI styles for terminal output
STYLES = {
    "red": "\033[0;31m",
    "yellow": "\033[1;33m",
    "green": "\033[0;32m",
    "dim": "\033[2m",
}
RESET = "\033[0m"


def _styled(msg: str, style: str) -> str:
    return f"{STYLES[style]}{msg}{RESET}"


def error(msg: str):
    """Print an error to stderr in red."""
    print(_styled(msg, "red"), file=sys.stderr)


def warning(msg: str):
    print(_styled(msg, "yellow"))


def success(msg: str):
    print(_styled(msg, "green"))


def info(msg: str):
    print(msg)


def dim(msg: str):
    """Print secondary details (paths, view lists)."""
    print(_styled(msg, "dim"))


def parse_var_args(extra: List[str]) -> Tuple[Dict[str, str], List[str]]:
    """
    Pull --var-<name> <value> pairs out of unparsed arguments.

    Also accepts --var-<name>=<value>.

    Returns:
        (variables keyed by upper-cased name, arguments that were not variables)
    """
    variables = {}
    leftover = []

    i = 0
    while i < len(extra):
        arg = extra[i]
        if arg.startswith('--var-') and '=' in arg:
            name, value = arg[6:].split('=', 1)
            variables[name.upper()] = value
            i += 1
        elif arg.startswith('--var-') and i + 1 < len(extra):
            # Parse variable: --var-name value
            variables[arg[6:].upper()] = extra[i + 1]
            i += 2
        else:
            leftover.append(arg)
            i += 1

    return variables, leftover


def load_library(args) -> SkillLibrary:
    """Load the skill library selected by --dir / SNOWSKILLS_DIR / skills.yaml."""
    skills_dir = get_skills_dir(args.config, getattr(args, 'dir', None))
    logger.debug(f"Loading skills from {skills_dir}")
    library = SkillLibrary(skills_dir)
    library.load()
    return library


# =============================================================================
# Command Handlers
# =============================================================================

def cmd_list(args):
    """Execute list command."""
    library = load_library(args)

    if args.topic and args.topic not in library.topics():
        error(f"Unknown topic '{args.topic}'. Available: {', '.join(library.topics())}")
        return 1

    print(library.get_descriptions(format=args.format, topic=args.topic))
    return 0


def cmd_show(args):
    """Execute show command."""
    library = load_library(args)
    skill = library.require(args.name)

    info(f"\n{'=' * 100}")
    info(f"{skill.title or skill.name}  [{skill.topic}]")
    info('=' * 100)
    dim(f"{skill.path}")
    info(f"\n{skill.description}")

    if skill.goal:
        info("\nGoal:")
        info(f"  {skill.goal}")

    if skill.inputs:
        info("\nInputs to collect:")
        for spec in skill.inputs:
            qualifiers = [spec.type]
            if spec.optional:
                qualifiers.append("optional")
            if spec.default is not None:
                qualifiers.append(f"default {spec.default}")
            info(f"  <{spec.name}> ({', '.join(qualifiers)}): {spec.description}")

    info("\nQueries:")
    for number, query in enumerate(skill.queries, 1):
        info(f"  {number}. {query.title}")

    if skill.output_format:
        info("\nOutput format:")
        for item in skill.output_format:
            info(f"  - {item}")

    if skill.related:
        info("\nRelated skills:")
        for name in skill.related:
            info(f"  - {name}")

    if skill.views:
        dim(f"\nViews: {', '.join(f'{schema}.{view}' for schema, view in skill.views)}")

    print()
    return 0


def cmd_render(args):
    """Execute render command."""
    library = load_library(args)
    skill = library.require(args.name)

    logger.debug(f"Parsed options: query={args.query}, limit={args.limit}, output={args.output}, variables={args.variables}")

    rendered = render_skill(
        skill,
        variables=args.variables,
        defaults=args.config.get("defaults"),
        query_number=args.query,
        limit=args.limit,
    )

    if args.output:
        output_path = resolve_output_path(skill, args.output, args.query, args.variables)
        output_path.write_text(rendered + "\n", encoding="utf-8")
        success(f"Rendered SQL written to {output_path}")
    else:
        print(rendered)

    return 0


def cmd_lint(args):
    """Execute lint command."""
    library = load_library(args)
    result = lint_library(library, args.config.get("extra_views", []))

    _print_lint_results(result.errors, result.warnings, len(library))

    if result.errors:
        return 1
    if args.strict and result.warnings:
        return 1
    return 0


def _print_lint_results(errors: list, warnings: list, skill_count: int):
    """Print lint results."""
    if not errors and not warnings:
        success(f"✅ All checks passed ({skill_count} skills)")
        return

    for w in warnings:
        warning(f"⚠️  {w}")
    for e in errors:
        error(f"❌ {e}")

    info(f"\n{skill_count} skill(s): {len(errors)} error(s), {len(warnings)} warning(s)")


def cmd_index(args):
    """Execute index command."""
    library = load_library(args)
    output_path = Path(args.output) if args.output else library.root / "index.yaml"
    index = library.save_index(output_path)
    count = sum(len(entries) for entries in index["topics"].values())
    success(f"Indexed {count} skill(s) across {len(index['topics'])} topic(s) -> {output_path}")
    return 0


# =============================================================================
# CLI Setup and Routing
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='snowskills',
        description='Snowflake diagnostic skills: list, show, render, lint and index',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Use --var-<name> <value> with 'render' to fill <NAME> placeholders.",
    )

    # Global options
    parser.add_argument('--debug', action='store_true', help='Enable debug output')
    parser.add_argument('--dir', type=str, help='Skills directory [env: SNOWSKILLS_DIR]')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    list_parser = subparsers.add_parser('list', help='List skills')
    list_parser.add_argument('--topic', type=str, help='Only skills from this topic')
    list_parser.add_argument('--format', choices=['list', 'table'], default='list', help='Output format')
    list_parser.set_defaults(func=cmd_list)

    show_parser = subparsers.add_parser('show', help='Show a skill')
    show_parser.add_argument('name', help='Skill name')
    show_parser.set_defaults(func=cmd_show)

    render_parser = subparsers.add_parser(
        'render',
        help='Render a skill query with placeholder values (does not execute it)'
    )
    render_parser.add_argument('name', help='Skill name')
    render_parser.add_argument('--query', type=int, help='Render only query N (1-based)')
    render_parser.add_argument('--limit', type=int, help='Append LIMIT N to rendered queries')
    render_parser.add_argument('--output', type=str, help='Write to a file or directory instead of stdout')
    render_parser.set_defaults(func=cmd_render)

    lint_parser = subparsers.add_parser('lint', help='Check skills for documentation issues')
    lint_parser.add_argument('--strict', action='store_true', help='Treat warnings as failures')
    lint_parser.set_defaults(func=cmd_lint)

    index_parser = subparsers.add_parser('index', help='Write a YAML index of all skills')
    index_parser.add_argument('--output', type=str, help='Index file path (default: <skills-dir>/index.yaml)')
    index_parser.set_defaults(func=cmd_index)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()

    args, extra = parser.parse_known_args(argv)
    args.variables, leftover = parse_var_args(extra)

    if leftover:
        parser.error(f"unrecognized arguments: {' '.join(leftover)}")

    # Show help if no command specified
    if not args.command:
        parser.print_help()
        return 0

    if args.variables and args.command != 'render':
        parser.error("--var-<name> options are only valid with 'render'")

    # Configure logging based on debug flag
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(message)s'
    )

    try:
        args.config = load_config()
        return args.func(args)
    except KeyboardInterrupt:
        logger.warning("\nInterrupted by user")
        return 130
    except (ValueError, FileNotFoundError) as e:
        error(f"Error: {e}")
        if args.debug:
            traceback.print_exc()
        return 1
    except Exception as e:
        logger.error(f"Error: {e}")
        if args.debug:
            traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
