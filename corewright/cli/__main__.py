"""Command-line entry for `python -m corewright.cli`."""

from corewright.cli.main import run_cli


def main() -> int:
    """Run the CLI and return the process exit code."""
    return run_cli()


if __name__ == "__main__":
    raise SystemExit(main())
