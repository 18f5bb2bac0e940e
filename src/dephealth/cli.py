"""CLI entry point for dephealth."""

import logging
from pathlib import Path

# Load .env file if it exists
from dotenv import load_dotenv
load_dotenv()

import typer
from rich.console import Console
from rich.table import Table

from dephealth.analyzers.pipeline import AssessmentPipeline, save_result
from dephealth.config import load_settings
from dephealth.models.schemas import AssessmentResult

app = typer.Typer(help="Dependency health scoring and risk assessment.")

console = Console()


@app.command()
def assess(
    data_dir: Path = typer.Argument(..., help="Directory of <owner>_<repo>_<facet>.json files"),
    scorecard_dir: Path | None = typer.Option(
        None, "--scorecard-dir", "-s", help="Directory of scorecard reports"
    ),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output JSON file"),
    top_n: int | None = typer.Option(None, "--top-n", "-n", help="Size of ranking slices"),
    workers: int | None = typer.Option(None, "--workers", "-w", help="Parallel workers"),
    config: Path | None = typer.Option(None, "--config", "-c", help="TOML config file"),
) -> None:
    """Assess collected repository data and print rankings."""
    try:
        settings = load_settings(config, top_n=top_n, max_workers=workers)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    pipeline = AssessmentPipeline(settings)
    try:
        result = pipeline.assess_directory(data_dir, scorecard_dir)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    _print_result(result)

    if output:
        save_result(result, output)
        console.print(f"\n[green]Saved to {output}[/green]")


def _print_result(result: AssessmentResult) -> None:
    """Render repository scores and cohort statistics."""
    summary = result.summary

    table = Table(title=f"{summary.total_repositories} Repositories")
    table.add_column("Repository", style="cyan")
    table.add_column("Health", justify="right")
    table.add_column("Risk", justify="right")
    table.add_column("Security", justify="right", style="dim")
    table.add_column("Maintenance", justify="right", style="dim")
    table.add_column("Sustainability", justify="right", style="dim")
    table.add_column("Licensing", justify="right", style="dim")

    by_name = {r.repository: r for r in result.repositories}
    for name in summary.health_ranking:
        repo = by_name[name]
        risks = repo.risk.risks
        health_color = _health_color(repo.health_score)
        risk_color = _risk_color(repo.risk.overall_risk)
        table.add_row(
            name,
            f"[{health_color}]{repo.health_score}[/{health_color}]",
            f"[{risk_color}]{repo.risk.overall_risk}[/{risk_color}]",
            str(risks.security.level),
            str(risks.maintenance.level),
            str(risks.sustainability.level),
            str(risks.licensing.level),
        )

    console.print(table)
    console.print()

    if summary.average_health_score is not None:
        console.print(f"[bold]Average health:[/bold] {summary.average_health_score}/100")
    console.print(
        f"[bold]Healthy:[/bold] {summary.healthy_repositories}  "
        f"[bold]At risk:[/bold] {summary.at_risk_repositories}  "
        f"[bold]Active:[/bold] {summary.active_repositories}"
    )
    console.print(f"[dim]{summary.risk_summary}[/dim]")

    if summary.needs_attention:
        console.print()
        console.print("[bold yellow]Needs attention:[/bold yellow]")
        for entry in summary.needs_attention:
            issues = ", ".join(entry.issues or []) or "-"
            console.print(f"  [yellow]![/yellow] {entry.repository} ({entry.score:.0f}): {issues}")

    if summary.scorecard.critical_findings:
        console.print()
        console.print("[bold red]Critical scorecard findings:[/bold red]")
        for finding in summary.scorecard.critical_findings:
            console.print(
                f"  [red]x[/red] {finding.repository} {finding.check} "
                f"({finding.score}/10): {finding.reason}"
            )

    if result.failures:
        console.print()
        console.print(f"[bold red]Failed ({len(result.failures)}):[/bold red]")
        for failure in result.failures[:10]:
            console.print(f"  [red]x[/red] {failure.repository}: {failure.message}")
        if len(result.failures) > 10:
            console.print(f"  [dim]... and {len(result.failures) - 10} more[/dim]")


def _health_color(score: int) -> str:
    return "green" if score >= 70 else "yellow" if score >= 40 else "red"


def _risk_color(risk: int) -> str:
    return "red" if risk >= 8 else "yellow" if risk >= 4 else "green"


@app.command()
def version() -> None:
    """Show version information."""
    from dephealth import __version__

    console.print(f"dephealth v{__version__}")


if __name__ == "__main__":
    app()
