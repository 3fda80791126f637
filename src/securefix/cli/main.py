"""Click CLI entry point for SecureFix."""

from __future__ import annotations

import logging

import click

from securefix._version import __version__


@click.group()
@click.version_option(version=__version__, prog_name="securefix")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def cli(verbose: bool):
    """SecureFix - single-line security fixes you can trust.

    AI rewrites are validated before use; anything doubtful falls back
    to a deterministic rule-based fix.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# Import and register subcommands
from securefix.cli.fix_cmd import apply, classify, fix  # noqa: E402
from securefix.cli.engines_cmd import engines  # noqa: E402
from securefix.cli.history_cmd import history  # noqa: E402

cli.add_command(fix)
cli.add_command(apply)
cli.add_command(classify)
cli.add_command(engines)
cli.add_command(history)


if __name__ == "__main__":
    cli()
