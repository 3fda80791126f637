"""securefix history command."""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path

import click

from securefix.core.config import load_config
from securefix.core.output import console, print_history, print_summary
from securefix.fix.recorder import OutcomeRecorder


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Export as JSON")
@click.option("--last", type=int, default=20, help="Number of entries to show")
@click.option("--summary", "show_summary", is_flag=True, help="Show aggregate counts only")
def history(as_json: bool, last: int, show_summary: bool):
    """Show which strategy produced recent fixes."""
    project_path = Path.cwd()
    config = load_config(project_path)
    recorder = OutcomeRecorder(project_path, config.recorder.filename)

    if show_summary:
        summary = recorder.summary()
        if as_json:
            click.echo(json.dumps({**asdict(summary), "success_rate": summary.success_rate}, indent=2))
            return
        print_summary(summary)
        return

    entries = recorder.read_entries(last_n=last)
    if as_json:
        click.echo(json.dumps(entries, indent=2))
        return

    if not entries:
        console.print("\n  No fixes recorded yet. Run `securefix fix` to start tracking.\n")
        return

    print_history(entries)
