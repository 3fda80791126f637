"""securefix fix / apply / classify commands."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click
from rich.markup import escape
from rich.prompt import Confirm

from securefix.core.config import load_config
from securefix.core.errors import InvalidSnippet, NoFixAvailable
from securefix.core.models import EngineId, FixOutcome
from securefix.core.output import (
    console,
    print_apply_result,
    print_fix_failure,
    print_fix_preview,
)
from securefix.fix.applier import LineApplier
from securefix.fix.engine import FixEngine
from securefix.scanner.classifier import classify_hint

ENGINE_CHOICES = [e.value for e in EngineId]


def _outcome_json(outcome: FixOutcome) -> dict:
    return {
        "snippet": outcome.request.snippet,
        "category": outcome.request.category.value,
        "strategy": outcome.applied_strategy.value,
        "text": outcome.text,
        "fallback": outcome.fallback_kind.value if outcome.fallback_kind else None,
        "rejection_reasons": list(outcome.rejection_reasons),
        "notices": list(outcome.notices),
    }


def _run_fix(
    fix_engine: FixEngine,
    snippet: str,
    category: str | None,
    engine: str | None,
    prefer_generative: bool | None,
    as_json: bool,
) -> FixOutcome:
    """Resolve a snippet or exit with status 1."""
    try:
        return fix_engine.fix_sync(snippet, category, engine, prefer_generative)
    except InvalidSnippet as e:
        raise click.BadParameter(str(e), param_hint="SNIPPET")
    except NoFixAvailable as e:
        if as_json:
            click.echo(json.dumps({
                "snippet": snippet,
                "category": e.failure.request.category.value,
                "error": e.failure.kind.value,
                "message": e.failure.message,
                "rejection_reasons": list(e.failure.rejection_reasons),
            }, indent=2))
        else:
            print_fix_failure(e.failure)
        sys.exit(1)


@click.command()
@click.argument("snippet")
@click.option("--category", type=str, help="Category hint from the scanner (e.g. hardcoded-api-key)")
@click.option("--engine", type=click.Choice(ENGINE_CHOICES), help="Generative engine to try first")
@click.option("--ai/--no-ai", "prefer_generative", default=None, help="Try an AI fix before the rule-based fix")
@click.option("--json", "as_json", is_flag=True, help="Print the outcome as JSON")
def fix(
    snippet: str,
    category: str | None,
    engine: str | None,
    prefer_generative: bool | None,
    as_json: bool,
):
    """Fix a single vulnerable line of code.

    The AI fix is used only if it passes validation; otherwise the
    deterministic rule-based fix is applied.
    """
    project_path = Path.cwd()
    fix_engine = FixEngine(load_config(project_path), project_path)
    outcome = _run_fix(fix_engine, snippet, category, engine, prefer_generative, as_json)

    if as_json:
        click.echo(json.dumps(_outcome_json(outcome), indent=2))
        return

    print_fix_preview(outcome, fix_engine.rule_fixer.describe(outcome.request.category))


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("line", type=int)
@click.option("--category", type=str, help="Category hint from the scanner")
@click.option("--engine", type=click.Choice(ENGINE_CHOICES), help="Generative engine to try first")
@click.option("--ai/--no-ai", "prefer_generative", default=None, help="Try an AI fix before the rule-based fix")
@click.option("--preview", is_flag=True, help="Preview fix without applying")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
def apply(
    file: Path,
    line: int,
    category: str | None,
    engine: str | None,
    prefer_generative: bool | None,
    preview: bool,
    yes: bool,
):
    """Fix LINE of FILE in place (a backup is kept in .securefix/backups)."""
    project_path = Path.cwd()
    fix_engine = FixEngine(load_config(project_path), project_path)
    applier = LineApplier(project_path)

    try:
        source_line = applier.read_line(file, line)
    except IndexError as e:
        raise click.BadParameter(str(e), param_hint="LINE")

    outcome = _run_fix(fix_engine, source_line, category, engine, prefer_generative, as_json=False)
    print_fix_preview(outcome, fix_engine.rule_fixer.describe(outcome.request.category))

    if preview:
        return

    if not yes:
        if not Confirm.ask("  Apply this fix?", default=False):
            console.print("  [dim]Skipped.[/dim]")
            return

    result = applier.apply(file, line, outcome.text, expected=source_line)
    print_apply_result(result)
    if not result.success:
        sys.exit(1)


@click.command()
@click.argument("snippet")
@click.option("--category", type=str, help="Category hint to check against")
def classify(snippet: str, category: str | None):
    """Show which vulnerability category a line falls into."""
    result = classify_hint(snippet, category)
    console.print(f"  {escape(snippet.strip())}  ->  [bold]{result.value}[/bold]")
