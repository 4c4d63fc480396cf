"""CLI for noteexplorer - helps organizing a stack of linked Markdown notes."""

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any

from . import __version__
from .config import load_config
from .report import (
    broken_links_json,
    broken_links_report,
    changed_report,
    isolated_report,
    sinks_report,
    sources_report,
    stats_json,
    stats_report,
    tasks_json,
    tasks_report,
)
from .runtime import Runtime, build_runtime

logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    """Send log records from the noteexplorer package to stderr."""
    pkg_logger = logging.getLogger("noteexplorer")
    pkg_logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    pkg_logger.propagate = False

    if pkg_logger.handlers:
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    pkg_logger.addHandler(handler)


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def cmd_stats(args: argparse.Namespace, rt: Runtime) -> int:
    """Print statistics."""
    if args.json:
        _print_json(stats_json(rt.collection))
    else:
        print(stats_report(rt.collection))
    return 0


def cmd_broken_links(args: argparse.Namespace, rt: Runtime) -> int:
    """Print links to notes that don't exist."""
    broken = rt.collection.get_broken_links()
    if args.json:
        _print_json(broken_links_json(broken))
    else:
        print(broken_links_report(broken))
    return 0


def cmd_sources(args: argparse.Namespace, rt: Runtime) -> int:
    notes = rt.collection.get_sources()
    if args.json:
        _print_json([n.to_dict() for n in notes])
    else:
        print(sources_report(notes))
    return 0


def cmd_sinks(args: argparse.Namespace, rt: Runtime) -> int:
    notes = rt.collection.get_sinks()
    if args.json:
        _print_json([n.to_dict() for n in notes])
    else:
        print(sinks_report(notes))
    return 0


def cmd_isolated(args: argparse.Namespace, rt: Runtime) -> int:
    notes = rt.collection.get_isolated()
    if args.json:
        _print_json([n.to_dict() for n in notes])
    else:
        print(isolated_report(notes))
    return 0


def cmd_tasks(args: argparse.Namespace, rt: Runtime) -> int:
    tasks = rt.collection.get_tasks()
    if args.json:
        _print_json(tasks_json(tasks))
    else:
        print(tasks_report(tasks))
    return 0


def cmd_update_backlinks(args: argparse.Namespace, rt: Runtime) -> int:
    """Add, update or remove the backlinks section in every note."""
    updated = rt.collection.update_backlinks()
    if args.json:
        _print_json([n.to_dict() for n in updated])
    else:
        print(changed_report("Updated backlinks section in", updated))
    return 0


def cmd_remove_backlinks(args: argparse.Namespace, rt: Runtime) -> int:
    removed = rt.collection.remove_backlinks()
    if args.json:
        _print_json([n.to_dict() for n in removed])
    else:
        print(changed_report("Removed backlinks section from", removed, list_notes=False))
    return 0


def _confirm(question: str) -> bool | None:
    """Ask a yes/no question; None if there is nobody left to answer."""
    try:
        reply = input(f"{question} ([y]/n) ")
    except EOFError:
        return None
    return reply.strip().lower() in ("", "y")


def cmd_update_filenames(args: argparse.Namespace, rt: Runtime) -> int:
    """Rename notes to "<id> <title>", updating links to them."""
    renamed = []
    rewritten = []
    for note, new_stem in rt.collection.get_mismatched_filenames():
        new_filename = f"{new_stem}.{note.extension}"
        if not args.force:
            answer = _confirm(f'Rename "{note.filename}" to "{new_filename}"?')
            if answer is None:
                break
            if not answer:
                continue

        changed = rt.collection.rename_note(note, new_stem)
        if not changed:
            continue
        renamed.append({"from": note.filename, "to": new_filename})
        rewritten.extend(changed[1:])
        if not args.json:
            print(f'Renamed "{note.filename}" to "{new_filename}"')

    if args.json:
        _print_json({"renamed": renamed, "updated": [n.to_dict() for n in rewritten]})
    else:
        print(f"Renamed {len(renamed)} notes, updated links in {len(rewritten)} notes")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="noteexplorer",
        description="Helps organizing your stack of linked Markdown notes",
    )
    parser.add_argument(
        "--version", action="version", version=f"noteexplorer {__version__}"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: search cwd/noteexplorer.toml, PATH/noteexplorer.toml)",
    )
    parser.add_argument(
        "-e", "--extension", metavar="ext", default=None,
        help="File extension of note files (default: md)",
    )
    parser.add_argument(
        "-i", "--id-format", metavar="format", default=None,
        help="Regular expression pattern for note IDs (default: \\d{14})",
    )
    parser.add_argument(
        "-b", "--backlinks-heading", metavar="heading", default=None,
        help='Heading to insert before backlinks (default: "## Links to this note")',
    )
    parser.add_argument("--json", action="store_true", help="Machine-readable output")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Show debug output")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only show errors")

    # Every command takes the notes directory as its only positional argument
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "path", metavar="PATH", nargs="?", type=Path, default=None,
        help="Path to the note files directory (default: .)",
    )

    subparsers = parser.add_subparsers(dest="cmd")
    subparsers.add_parser("stats", parents=[common], help="Prints statistics (default)")
    subparsers.add_parser(
        "list-broken-links", parents=[common], aliases=["brokenlinks"],
        help="Prints a list of broken links",
    )
    subparsers.add_parser(
        "list-isolated", parents=[common], aliases=["isolated"],
        help="Prints a list of notes with no incoming or outgoing links",
    )
    subparsers.add_parser(
        "list-sinks", parents=[common], aliases=["sinks"],
        help="Prints a list of notes with no outgoing links",
    )
    subparsers.add_parser(
        "list-sources", parents=[common], aliases=["sources"],
        help="Prints a list of notes with no incoming links",
    )
    subparsers.add_parser(
        "list-tasks", parents=[common], aliases=["tasks", "todos"],
        help="Prints a list of tasks",
    )
    subparsers.add_parser(
        "update-backlinks", parents=[common], aliases=["backlinks"],
        help="Updates backlink sections in all notes",
    )
    subparsers.add_parser(
        "remove-backlinks", parents=[common], help="Removes backlink sections in all notes"
    )
    parser_rename = subparsers.add_parser(
        "update-filenames", parents=[common], aliases=["rename"],
        help="Updates note filenames with ID and title",
    )
    parser_rename.add_argument(
        "-f", "--force", action="store_true", help="Always update names, never prompt"
    )
    return parser


HANDLERS = {
    "stats": cmd_stats,
    "list-broken-links": cmd_broken_links,
    "brokenlinks": cmd_broken_links,
    "list-isolated": cmd_isolated,
    "isolated": cmd_isolated,
    "list-sinks": cmd_sinks,
    "sinks": cmd_sinks,
    "list-sources": cmd_sources,
    "sources": cmd_sources,
    "list-tasks": cmd_tasks,
    "tasks": cmd_tasks,
    "todos": cmd_tasks,
    "update-backlinks": cmd_update_backlinks,
    "backlinks": cmd_update_backlinks,
    "remove-backlinks": cmd_remove_backlinks,
    "update-filenames": cmd_update_filenames,
    "rename": cmd_update_filenames,
}

# Global options that take a value
VALUE_OPTIONS = {"--config", "-e", "--extension", "-i", "--id-format", "-b", "--backlinks-heading"}


def _with_command(argv: list[str]) -> list[str]:
    """
    Insert the default command before a leading PATH, so that
    `noteexplorer ~/notes` means `noteexplorer stats ~/notes`.
    """
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg.startswith("-"):
            if arg in VALUE_OPTIONS:
                i += 1
            i += 1
            continue
        if arg in HANDLERS:
            return argv
        return argv[:i] + ["stats"] + argv[i:]
    return argv


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    argv = _with_command(sys.argv[1:] if argv is None else list(argv))
    args = build_parser().parse_args(argv)
    command = args.cmd or "stats"
    notes_path = getattr(args, "path", None)
    if not hasattr(args, "force"):
        args.force = False

    try:
        config = load_config(config_path=args.config, notes_path=notes_path)
    except (OSError, ValueError) as e:
        print(f"Error: Couldn't read config file: {e}", file=sys.stderr)
        sys.exit(1)

    if args.verbose:
        setup_logging("debug")
    elif args.quiet:
        setup_logging("error")
    else:
        setup_logging(config.log.level)

    try:
        rt = build_runtime(
            notes_path=notes_path,
            extension=args.extension,
            id_format=args.id_format,
            backlinks_heading=args.backlinks_heading,
            config=config,
        )
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    handler = HANDLERS[command]
    start_time = time.perf_counter()
    try:
        exit_code = handler(args, rt)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    logger.debug("Subcommand %s took %.1f ms", command, (time.perf_counter() - start_time) * 1000)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
