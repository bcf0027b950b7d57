"""
AuditLens CLI interface.

Commands:
- parse: Normalize scanner output or a policy report
- shares: Show the share inventory for scanner output
- policies: Show the policy tree for a policy report
- init-config: Write the default configuration file
"""

import json
import logging
from pathlib import Path
from typing import Optional

import typer

from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from auditlens.config import DEFAULT_CONFIG, AuditLensConfig, get_config, set_config
from auditlens.core.aggregator import (
    build_share_inventory,
    calculate_stats,
    classify_system_identifier,
    extract_user_info,
)
from auditlens.core.errors import IngestError
from auditlens.core.models import ErrorPayload, PolicyReport, ScanResults, Severity
from auditlens.ingest.normalizer import DataNormalizer
from auditlens.ingest.sniffer import InputCategory


app: typer.Typer = typer.Typer(
    name="auditlens",
    help="Share-scanner and Group Policy audit normalizer",
    no_args_is_help=True,
)

console: Console = Console()

LOG_FORMAT: str = "%(asctime)s %(levelname)s %(name)s:%(funcName)s:%(lineno)d %(message)s"

SEVERITY_STYLES: dict[Severity, str] = {
    Severity.BLACK: "bold white on black",
    Severity.RED: "red",
    Severity.YELLOW: "yellow",
    Severity.GREEN: "green",
}


def _setup_logging(level_name: str) -> None:
    """Configure the root logger once per process."""
    level = getattr(logging, level_name.strip().upper(), None)
    if not isinstance(level, int):
        level = logging.INFO

    root: logging.Logger = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    else:
        root.setLevel(level)


@app.callback()
def main_options(
    config_file: Optional[str] = typer.Option(None, "--config", "-c", help="YAML config file"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override log level"),
) -> None:
    """
    Share-scanner and Group Policy audit normalizer.
    """
    if config_file:
        set_config(AuditLensConfig.from_file(config_file))

    config: AuditLensConfig = get_config()
    _setup_logging(log_level or ("DEBUG" if config.debug else config.log_level))


def _build_normalizer() -> DataNormalizer:
    config: AuditLensConfig = get_config()
    return DataNormalizer(
        policy_parser=config.parser.build_parser(),
        localizer=config.diagnostics.build_localizer(),
    )


def _load(file: str, format: str) -> ScanResults | PolicyReport:
    """Normalize a file or exit with a rendered diagnostic."""
    path: Path = Path(file)
    if not path.exists():
        console.print(f"[red]Error: File not found: {file}[/red]")
        raise typer.Exit(1)

    normalizer: DataNormalizer = _build_normalizer()

    try:
        if format == "auto":
            return normalizer.normalize_file(path)

        content: str = path.read_text(encoding="utf-8", errors="replace")
        return normalizer.normalize(content, InputCategory(format), file_name=path.name)

    except ValueError as e:
        if isinstance(e, IngestError) and e.diagnostic is not None:
            render_diagnostic(e.diagnostic)
        else:
            console.print(f"[red]Import failed: {e}[/red]")
        raise typer.Exit(1)


def render_diagnostic(payload: ErrorPayload) -> None:
    """Print an error payload with a line-number gutter."""
    console.print(f"[red]Error: {payload.message}[/red]")

    if not payload.snippet:
        return

    if payload.actual_line_number and payload.snippet_start_line:
        console.print("[dim]The highlighted line shows where the error was detected:[/dim]")
    else:
        console.print("[dim]File content near the error:[/dim]")

    first: int = payload.snippet_start_line or 1
    for offset, line in enumerate(payload.snippet.split("\n")):
        number: int = first + offset
        gutter: Text = Text(f"{number:>5} | ", style="dim")
        if payload.actual_line_number == number:
            console.print(gutter + Text(line, style="bold red"))
        else:
            console.print(gutter + Text(line))


@app.command()
def parse(
    file: str = typer.Argument(..., help="Scanner output or policy report"),
    format: str = typer.Option(
        "auto",
        "--format",
        "-f",
        help="Input category (json, text, log, auto)"
    ),
    as_json: bool = typer.Option(False, "--json", "-j", help="Print normalized records as JSON"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write JSON to file"),
) -> None:
    """
    Normalize a scanner output file or policy report.
    """
    result: ScanResults | PolicyReport = _load(file, format)

    if as_json or output:
        if isinstance(result, PolicyReport):
            payload: str = result.model_dump_json(indent=2, exclude={"raw"})
        else:
            payload = json.dumps(
                {
                    **result.model_dump(mode="json"),
                    "stats": calculate_stats(result.results).model_dump(),
                },
                indent=2,
            )

        if output:
            Path(output).write_text(payload, encoding="utf-8")
            console.print(f"[green]Wrote {output}[/green]")
        else:
            typer.echo(payload)
        return

    if isinstance(result, PolicyReport):
        console.print(
            f"[green]Parsed {len(result.policies)} policies, "
            f"{result.setting_count} setting blocks, {len(result.findings)} findings[/green]"
        )
        if result.finished_at:
            console.print(f"Finished at {result.finished_at} ({result.duration or 'unknown duration'})")
        return

    stats = calculate_stats(result.results)
    table: Table = Table(title=f"Findings in {Path(file).name}")
    table.add_column("Severity", style="cyan")
    table.add_column("Count", justify="right")

    for severity in sorted(Severity, key=lambda s: s.sort_key()):
        table.add_row(
            Text(severity.value, style=SEVERITY_STYLES[severity]),
            str(getattr(stats, severity.value.lower())),
        )
    table.add_row("Total", str(stats.total))
    console.print(table)

    dup = result.duplicate_stats
    if dup.duplicates_removed:
        console.print(
            f"Duplicate detection: {dup.duplicates_removed} removed "
            f"({dup.duplicate_percentage}% of {dup.original_count})"
        )
    console.print(f"Shares: {len(result.shares)}")

    users = extract_user_info(result.results)
    if users.users:
        console.print(f"User contexts: {users.total_users} users on {users.total_machines} machines")


@app.command()
def shares(
    file: str = typer.Argument(..., help="Scanner output file"),
    format: str = typer.Option("auto", "--format", "-f", help="Input category (json, text, log, auto)"),
) -> None:
    """
    Show the share inventory.
    """
    result: ScanResults | PolicyReport = _load(file, format)
    if isinstance(result, PolicyReport):
        console.print("[red]Error: Policy reports contain no shares[/red]")
        raise typer.Exit(1)

    table: Table = Table(title="Shares")
    table.add_column("Share", style="cyan")
    table.add_column("System type")
    table.add_column("Files", justify="right")
    table.add_column("Permissions")
    table.add_column("Severity")
    table.add_column("Comment")

    for summary in build_share_inventory(result.shares, result.results):
        severity: Optional[Severity] = summary.severity
        table.add_row(
            summary.path,
            classify_system_identifier(summary.system_id).type,
            str(summary.file_count),
            ", ".join(summary.permissions),
            Text(severity.value, style=SEVERITY_STYLES[severity]) if severity else "Unknown",
            summary.share_comment,
        )

    console.print(table)


@app.command()
def policies(
    file: str = typer.Argument(..., help="Policy audit report"),
) -> None:
    """
    Show policies, setting blocks and findings as a tree.
    """
    result: ScanResults | PolicyReport = _load(file, "auto")
    if not isinstance(result, PolicyReport):
        console.print("[red]Error: Not a policy report[/red]")
        raise typer.Exit(1)

    tree: Tree = Tree(f"[bold]{Path(file).name}[/bold]")

    for policy in result.policies:
        header = policy.header
        label: str = header.name or header.title or "Unnamed policy"
        if header.guid:
            label += f" [dim]{{{header.guid}}}[/dim]"
        branch: Tree = tree.add(label)

        for link in header.links:
            branch.add(f"[blue]Link[/blue] {link}")

        for block in policy.settings:
            title: str = " / ".join(part for part in (block.scope, block.category) if part) or "Settings"
            block_branch: Tree = branch.add(f"{title} ({len(block.entries)} entries)")
            for finding in block.findings:
                style: str = SEVERITY_STYLES.get(finding.severity, "white") if finding.severity else "white"
                block_branch.add(Text(f"{finding.type or 'Finding'}: {finding.reason or ''}", style=style))

    console.print(tree)


@app.command("init-config")
def init_config(
    output: str = typer.Option("auditlens.yaml", "--output", "-o", help="Config file path"),
) -> None:
    """
    Write the default configuration file.
    """
    path: Path = Path(output)
    if path.exists():
        console.print(f"[red]Error: {output} already exists[/red]")
        raise typer.Exit(1)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONFIG.lstrip(), encoding="utf-8")
    console.print(f"[green]Wrote {output}[/green]")


def main() -> None:
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
