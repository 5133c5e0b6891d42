"""CLI interface for oaslint using Typer framework."""

import json as jsonlib
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from oaslint import __description__, __version__
from oaslint.catalog import filter_by_ids, load_manual_rules, load_rules
from oaslint.comparison import BaselineComparisonSource
from oaslint.config import LogLevel, OaslintConfig, OutputFormat, load_config
from oaslint.diagnostics import ErrorCollector
from oaslint.errors import CatalogError
from oaslint.models.finding import DiagnosticSeverity
from oaslint.models.rule import RuleDefinition
from oaslint.parser.locator import PositionLocator
from oaslint.report import build_robot_xml
from oaslint.validation import LintResult, RuleDispatcher, get_default_registry

app = typer.Typer(
    name="oaslint",
    help=__description__,
    add_completion=False,
    rich_markup_mode="rich"
)

console = Console()

_LOG_LEVELS = {
    LogLevel.ERROR: logging.ERROR,
    LogLevel.WARN: logging.WARNING,
    LogLevel.INFO: logging.INFO,
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.TRACE: logging.DEBUG,
}

_SEVERITY_COLORS = {
    DiagnosticSeverity.ERROR: "red",
    DiagnosticSeverity.WARNING: "yellow",
    DiagnosticSeverity.INFO: "blue",
    DiagnosticSeverity.HINT: "dim",
}


def version_callback(value: bool) -> None:
    """Show version information and exit."""
    if value:
        console.print(f"oaslint version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option("--version", "-v", callback=version_callback, help="Show version and exit")
    ] = False,
) -> None:
    """oaslint - Rule-driven linter for OpenAPI documents."""


def configure_logging(level: LogLevel | str) -> None:
    """Send log records to stderr through rich at the configured level."""
    handler = RichHandler(console=Console(stderr=True), show_path=False)
    logging.basicConfig(
        level=_LOG_LEVELS.get(LogLevel(level), logging.WARNING),
        format="%(message)s",
        handlers=[handler],
        force=True,
    )


def _load_config_or_exit(config: Path | None) -> OaslintConfig:
    try:
        return load_config(config)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def _load_rules_or_exit(rules_dir: str, ruleset: str) -> list[RuleDefinition]:
    try:
        return load_rules(rules_dir, ruleset)
    except CatalogError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def render_markdown(result: LintResult, spec_path: Path, raw: str) -> str:
    """Markdown report of a run."""
    locator = PositionLocator(raw)
    lines = [
        "# Validation Report",
        f"**Document:** {spec_path.name}",
        f"**Status:** {result.status.value}",
        f"**Exit Code:** {result.exit_code}",
        "",
    ]
    if result.metadata.get("title"):
        lines.insert(2, f"**Title:** {result.metadata['title']}")

    if result.counters:
        lines.append("## Counters")
        lines.extend(f"- {key}: {value}" for key, value in result.counters.items())
        lines.append("")

    if result.findings:
        lines.append("## Findings")
        for finding in result.findings:
            line = locator.line_number(finding.start)
            lines.append(f"- **{finding.label.upper()}** {finding.source} (line {line}): {finding.message}")
    return "\n".join(lines)


def _print_table(result: LintResult, raw: str) -> None:
    status_color = "green" if result.status.value == "pass" else "yellow" if result.status.value == "warn" else "red"
    console.print(f"[{status_color}]Validation Status: {result.status.value.upper()}[/{status_color}]")
    console.print(f"Exit Code: {result.exit_code}")

    if result.counters:
        console.print("\n[blue]Counters:[/blue]")
        counter_table = Table()
        counter_table.add_column("Metric", style="cyan")
        counter_table.add_column("Count", style="white", justify="right")
        for key, value in sorted(result.counters.items()):
            counter_table.add_row(key.replace("_", " ").title(), str(value))
        console.print(counter_table)

    if not result.findings:
        console.print("\n[green]No findings![/green]")
        return

    locator = PositionLocator(raw)
    console.print("\n[blue]Findings:[/blue]")
    findings_table = Table()
    findings_table.add_column("Rule", style="cyan")
    findings_table.add_column("Severity", style="white")
    findings_table.add_column("Line", style="dim", justify="right")
    findings_table.add_column("Message", style="white")
    for finding in result.findings:
        color = _SEVERITY_COLORS[finding.severity]
        findings_table.add_row(
            finding.source,
            f"[{color}]{finding.label}[/{color}]",
            str(locator.line_number(finding.start)),
            finding.message,
        )
    console.print(findings_table)


@app.command()
def validate(
    spec: Annotated[
        Path,
        typer.Argument(help="Path to the OpenAPI document (YAML or JSON)")
    ],
    ruleset: Annotated[
        Optional[str],
        typer.Option("--ruleset", help="Ruleset folder name (default: from config, 'default')")
    ] = None,
    rules_dir: Annotated[
        Optional[Path],
        typer.Option("--rules-dir", help="Directory holding ruleset folders (default: bundled rulesets)")
    ] = None,
    rule: Annotated[
        Optional[list[str]],
        typer.Option("--rule", "-r", help="Only run the rule with this id (repeatable)")
    ] = None,
    format: Annotated[
        Optional[str],
        typer.Option("--format", "-f", help="Output format: table, json, markdown, robot (default: table)")
    ] = None,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Configuration file path (default: search for .oaslint.json)")
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write the report to a file (table format writes JSON)")
    ] = None,
    errors_dir: Annotated[
        Optional[Path],
        typer.Option("--errors-dir", help="Directory for run error logs (default: from config)")
    ] = None,
    manual_dir: Annotated[
        Optional[Path],
        typer.Option("--manual-dir", help="Manual checklist folder for robot reports")
    ] = None,
    skip_manual: Annotated[
        bool,
        typer.Option("--skip-manual", help="Report manual checklist entries as skipped")
    ] = False,
) -> None:
    """Validate an OpenAPI document against a ruleset."""
    oaslint_config = _load_config_or_exit(config)
    configure_logging(oaslint_config.logging.level)

    valid_formats = [f.value for f in OutputFormat]
    output_format = format or oaslint_config.output.format.value
    if output_format not in valid_formats:
        console.print(f"[red]Error:[/red] Invalid format '{output_format}'. Must be one of: {', '.join(valid_formats)}")
        raise typer.Exit(1)

    try:
        raw = spec.read_text(encoding="utf-8")
    except OSError as e:
        console.print(f"[red]Error:[/red] Cannot read {spec}: {e}")
        raise typer.Exit(1)

    rules = _load_rules_or_exit(
        str(rules_dir) if rules_dir else oaslint_config.rules.dir,
        ruleset or oaslint_config.rules.ruleset,
    )
    rules = filter_by_ids(rules, rule)

    comparison = None
    if oaslint_config.comparison.enabled:
        comparison = BaselineComparisonSource.from_config(oaslint_config.comparison)

    collector = ErrorCollector(command="validate")
    dispatcher = RuleDispatcher(config=oaslint_config, comparison=comparison, error_collector=collector)
    result = dispatcher.run(raw, rules)

    errors_target = errors_dir or oaslint_config.diagnostics.errors_dir
    if errors_target and collector.has_errors():
        written = collector.flush_to_filesystem(Path(errors_target))
        if written is not None:
            console.print(f"[dim]Run errors written to {written}[/dim]")

    if output_format == OutputFormat.ROBOT.value:
        manual_rules = load_manual_rules(manual_dir or oaslint_config.rules.manual_dir)
        report = build_robot_xml(result.findings, rules, manual_rules, raw, skip_manual=skip_manual)
    elif output_format == OutputFormat.MARKDOWN.value:
        report = render_markdown(result, spec, raw)
    else:
        report = jsonlib.dumps(result.to_dict(), indent=2, ensure_ascii=False)

    if output is not None:
        output.write_text(report, encoding="utf-8")
        console.print(f"[green]Report written to[/green] {output}")
    elif output_format == OutputFormat.TABLE.value:
        _print_table(result, raw)
    else:
        typer.echo(report)

    raise typer.Exit(result.exit_code)


@app.command("rules")
def list_rules(
    ruleset: Annotated[
        Optional[str],
        typer.Option("--ruleset", help="Ruleset folder name (default: from config, 'default')")
    ] = None,
    rules_dir: Annotated[
        Optional[Path],
        typer.Option("--rules-dir", help="Directory holding ruleset folders (default: bundled rulesets)")
    ] = None,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Configuration file path (default: search for .oaslint.json)")
    ] = None,
) -> None:
    """List the implemented rules of a ruleset."""
    oaslint_config = _load_config_or_exit(config)
    configure_logging(oaslint_config.logging.level)
    rules = _load_rules_or_exit(
        str(rules_dir) if rules_dir else oaslint_config.rules.dir,
        ruleset or oaslint_config.rules.ruleset,
    )
    registry = get_default_registry()

    table = Table(title=f"Rules ({len(rules)})")
    table.add_column("Id", style="cyan")
    table.add_column("Severity", style="white")
    table.add_column("Check", style="white")
    table.add_column("Runs", style="white")
    table.add_column("Title", style="dim")
    for entry in rules:
        runs = "[green]yes[/green]" if entry.check_name in registry else "[dim]no[/dim]"
        table.add_row(entry.id, entry.severity.label, entry.check_name, runs, entry.title or entry.message)
    console.print(table)


@app.command("checks")
def list_checks() -> None:
    """List the registered check implementations."""
    registry = get_default_registry()
    table = Table(title=f"Checks ({len(registry)})")
    table.add_column("Check", style="cyan")
    table.add_column("Kind", style="white")
    for name in registry.names():
        entry = registry.get(name)
        table.add_row(name, "external" if entry.external else "local")
    console.print(table)


if __name__ == "__main__":
    app()
