"""CLI entry point for waylog.

Usage:
    waylog run claude
    waylog pull --provider codex --force
    python -m waylog pull
"""

import sys


def main() -> int:
    """Main entry point for the waylog CLI."""
    from waylog.cli import run_cli

    return run_cli(sys.argv[1:])


if __name__ == "__main__":
    sys.exit(main())
