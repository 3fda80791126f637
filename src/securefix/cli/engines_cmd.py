"""securefix engines command."""

from __future__ import annotations

from pathlib import Path

import click

from securefix.core.config import load_config
from securefix.core.output import console, print_availability
from securefix.fix.ai_fixer import GenerativeRewriter


@click.command()
def engines():
    """Show which generative engines have credentials configured."""
    config = load_config(Path.cwd())
    rewriter = GenerativeRewriter(config)
    availability = {engine: rewriter.is_available(engine) for engine in config.fix.engines}
    print_availability(availability, config.fix.default_engine)

    if not any(availability.values()):
        console.print("\n  No engine configured; fixes will use deterministic rules only.")
        names = ", ".join(cfg.api_key_env for cfg in config.fix.engines.values())
        console.print(f"  Set one of: {names}\n")
