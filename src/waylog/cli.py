"""Command-line interface for waylog."""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
from pathlib import Path
from typing import NoReturn

from waylog import __version__
from waylog.commands import handle_pull, handle_run, resolve_agent, select_providers
from waylog.config import Config, load_config
from waylog.errors import (
    EX_OK,
    EX_USAGE,
    EXIT_INTERRUPTED,
    AgentNotInstalledError,
    MissingAgentError,
    ProviderNotFoundError,
    WaylogError,
    exit_code_for,
)
from waylog.logging import get_logger, setup_logging
from waylog.output import Output
from waylog.paths import WAYLOG_DIR, get_logs_dir
from waylog.project import resolve_project_root
from waylog.providers import canonical_name

log = get_logger()


class _Parser(argparse.ArgumentParser):
    """Argument parser that reports usage errors with EX_USAGE."""

    def error(self, message: str) -> NoReturn:
        self.print_usage()
        self.exit(EX_USAGE, f"{self.prog}: error: {message}\n")


def _add_global_flags(parser: argparse.ArgumentParser, suppress: bool) -> None:
    # Subcommands repeat the global flags with suppressed defaults so
    # `waylog pull -v` and `waylog -v pull` behave the same
    default = argparse.SUPPRESS
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=default if suppress else False,
        help="Show per-session details and debug logging",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=default if suppress else False,
        help="Suppress non-error output",
    )
    parser.add_argument(
        "--output",
        choices=("text", "json"),
        default=default if suppress else "text",
        help="Output format (default: text)",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = _Parser(
        prog="waylog",
        description="Automatically sync AI chat history from various CLI tools",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    _add_global_flags(parser, suppress=False)

    subparsers = parser.add_subparsers(dest="command", help="Command")

    run_parser = subparsers.add_parser(
        "run",
        help="Run an AI agent and sync its chat history while it runs",
    )
    _add_global_flags(run_parser, suppress=True)
    run_parser.add_argument(
        "agent",
        nargs="?",
        help="Agent to run (claude, gemini, codex)",
    )
    run_parser.add_argument(
        "args",
        nargs=argparse.REMAINDER,
        help="Arguments passed through to the agent",
    )

    pull_parser = subparsers.add_parser(
        "pull",
        help="Sync chat history from all installed agents",
    )
    _add_global_flags(pull_parser, suppress=True)
    pull_parser.add_argument(
        "-p", "--provider",
        help="Only pull from this provider",
    )
    pull_parser.add_argument(
        "-f", "--force",
        action="store_true",
        help="Re-check sessions already marked up to date",
    )

    return parser


def _init_logging(config: Config, project_root: Path, verbose: bool) -> None:
    is_new = not (project_root / WAYLOG_DIR).is_dir()
    setup_logging(config.logging, get_logs_dir(project_root), verbose=verbose)
    if is_new:
        log.info("Initializing new waylog project in: %s", project_root)


def _run(parsed: argparse.Namespace, output: Output) -> int:
    project_root = resolve_project_root("run", output)
    assert project_root is not None
    config = load_config(project_root)

    try:
        provider = resolve_agent(parsed.agent, config)
    except MissingAgentError:
        output.missing_agent()
        return EX_USAGE
    except ProviderNotFoundError as e:
        output.unknown_agent(e.name)
        return EX_USAGE

    _init_logging(config, project_root, parsed.verbose)
    return asyncio.run(handle_run(provider, parsed.args, project_root, config))


def _pull(parsed: argparse.Namespace, output: Output) -> int:
    if parsed.provider:
        try:
            canonical_name(parsed.provider)
        except ProviderNotFoundError as e:
            output.unknown_provider(e.name)
            return EX_USAGE

    project_root = resolve_project_root("pull", output)
    if project_root is None:
        return EX_OK
    config = load_config(project_root)
    providers = select_providers(parsed.provider, config)

    _init_logging(config, project_root, parsed.verbose)
    return asyncio.run(handle_pull(providers, parsed.force, project_root, output))


def run_cli(args: Sequence[str]) -> int:
    """Run the CLI with the given arguments and return the exit code."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    if parsed.command is None:
        parser.print_help()
        return EX_USAGE

    output = Output(
        quiet=parsed.quiet,
        json=parsed.output == "json",
        verbose=parsed.verbose,
    )

    try:
        if parsed.command == "run":
            return _run(parsed, output)
        return _pull(parsed, output)
    except AgentNotInstalledError as e:
        output.agent_not_installed(e.command)
        return e.exit_code
    except (WaylogError, OSError) as e:
        log.error("%s", e)
        output.error(str(e))
        return exit_code_for(e)
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED
