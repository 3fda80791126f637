"""Rich terminal formatting for SecureFix output."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from securefix.core.models import EngineId, FixFailure, FixOutcome, Strategy
from securefix.fix.applier import ApplyResult
from securefix.fix.recorder import OutcomeSummary
from securefix.fix.rule_fixer import FixRule

console = Console()
error_console = Console(stderr=True)


STRATEGY_COLORS = {
    Strategy.GENERATIVE: "magenta",
    Strategy.DETERMINISTIC: "green",
}


def print_fix_preview(outcome: FixOutcome, rule: FixRule | None = None) -> None:
    """Print the original line, the fix and how it was produced."""
    strategy = outcome.applied_strategy
    color = STRATEGY_COLORS[strategy]
    request = outcome.request

    lines = []
    lines.append(f"  Category: {request.category.value}")
    source = "AI" if strategy is Strategy.GENERATIVE else "rule-based"
    if strategy is Strategy.GENERATIVE:
        source += f" ({request.engine.value}, validated)"
    lines.append(f"  Strategy: [{color}]{source}[/{color}]")
    lines.append("")
    lines.append(f"  [red]- {escape(request.snippet.strip())}[/red]")
    lines.append(f"  [green]+ {escape(outcome.text.strip())}[/green]")

    if outcome.notices:
        lines.append("")
        for notice in outcome.notices:
            lines.append(f"  [yellow]{escape(notice)}[/yellow]")

    if outcome.rejection_reasons:
        lines.append("")
        lines.append("  [dim]AI candidate rejected because:[/dim]")
        for reason in outcome.rejection_reasons:
            lines.append(f"    [dim]- {escape(reason)}[/dim]")

    if rule is not None and strategy is Strategy.DETERMINISTIC and rule.manual_steps:
        lines.append("")
        lines.append("  [cyan]Manual steps required:[/cyan]")
        for step in rule.manual_steps:
            lines.append(f"    - {step}")

    console.print(Panel(
        "\n".join(lines),
        title="[bold]Fix Preview[/bold]",
        border_style=color,
        padding=(0, 1),
    ))


def print_fix_failure(failure: FixFailure) -> None:
    """Print a terminal NoFixAvailable failure."""
    error_console.print(f"\n  [red]❌ {escape(failure.message)}[/red]")
    for notice in failure.notices:
        error_console.print(f"     [yellow]{escape(notice)}[/yellow]")
    for reason in failure.rejection_reasons:
        error_console.print(f"     [dim]- {escape(reason)}[/dim]")
    error_console.print()


def print_apply_result(result: ApplyResult) -> None:
    """Print a single apply result."""
    if result.success:
        console.print(f"  [green]✅[/green]  {escape(result.message)}")
    else:
        console.print(f"  [red]❌[/red]  {escape(result.message)}")


def print_availability(availability: dict[EngineId, bool], default: EngineId) -> None:
    """Print credential presence per engine."""
    table = Table(title="Generative engines", show_edge=False)
    table.add_column("Engine")
    table.add_column("Credentials")
    table.add_column("Default")
    for engine, available in availability.items():
        status = "[green]configured[/green]" if available else "[red]missing[/red]"
        table.add_row(engine.value, status, "*" if engine is default else "")
    console.print(table)


def print_history(entries: list[dict[str, str]]) -> None:
    """Print recent outcome log entries."""
    table = Table(show_edge=False)
    for column in ("Time", "Category", "Strategy", "Result", "Engine", "Detail"):
        table.add_column(column)
    for entry in entries:
        result = entry["success"]
        result_str = f"[green]{result}[/green]" if result == "success" else f"[red]{result}[/red]"
        table.add_row(
            entry["timestamp"],
            entry["category"],
            entry["strategy"],
            result_str,
            entry["engine"],
            escape(entry["detail"]),
        )
    console.print(table)


def print_summary(summary: OutcomeSummary) -> None:
    """Print aggregate outcome counts."""
    lines = []
    lines.append(f"  Requests:       {summary.total}")
    lines.append(f"  AI fixes:       [magenta]{summary.generative}[/magenta]")
    lines.append(f"  Rule fixes:     [green]{summary.deterministic}[/green]")
    lines.append(f"  Fallbacks:      [yellow]{summary.fallbacks}[/yellow]")
    lines.append(f"  No fix:         [red]{summary.failures}[/red]")
    lines.append(f"  Success rate:   {summary.success_rate:.0%}")
    if summary.by_category:
        lines.append("")
        for category, count in sorted(summary.by_category.items(), key=lambda kv: -kv[1]):
            lines.append(f"  {category:<20} {count}")

    console.print(Panel(
        "\n".join(lines),
        title="[bold]SecureFix Outcomes[/bold]",
        padding=(0, 1),
    ))
