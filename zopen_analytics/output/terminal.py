"""Rich terminal output for zopen audit reports."""
from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from zopen_analytics import __version__
from zopen_analytics.models import AuditFinding, AuditReport, Severity

SEVERITY_LABELS = {
    Severity.CRITICAL: "[bold red]CRITICAL[/bold red]",
    Severity.HIGH: "[bold yellow]HIGH[/bold yellow]",
    Severity.MEDIUM: "[yellow]MODERATE[/yellow]",
    Severity.LOW: "[dim]LOW[/dim]",
    Severity.UNKNOWN: "[magenta]UNKNOWN[/magenta]",
}


def render_report(report: AuditReport, verbose: bool = False,
                  console: Console | None = None) -> None:
    """Render the audit report, ending with the summary line."""
    console = console or Console()

    _render_header(console)
    if report.findings:
        _render_findings(report.findings, verbose, console)
    else:
        console.print(f"  No known vulnerabilities in {report.packages_scanned} active packages.")
        console.print()
    _render_summary_line(report, console)


def _render_header(console: Console) -> None:
    header = Text()
    header.append("  ZOPEN AUDIT ", style="bold white")
    header.append(f"v{__version__} -- installed package vulnerability report", style="dim")
    console.print(Panel(header, style="bold blue"))


def _render_findings(findings: list[AuditFinding], verbose: bool, console: Console) -> None:
    current = None
    for finding in findings:
        if finding.package != current:
            if current is not None:
                console.print()
            current = finding.package
            console.print(f"  [bold]{escape(finding.package)}[/bold] "
                          f"[dim]{escape(finding.release)}[/dim]")
        console.print(f"    {SEVERITY_LABELS[finding.severity]}  {escape(finding.id)}")
        if verbose and finding.details:
            console.print(f"      [dim]{escape(finding.details)}[/dim]")
    console.print()


def _render_summary_line(report: AuditReport, console: Console) -> None:
    style = "bold red" if report.critical or report.high else "bold"
    if report.unknown:
        console.print(f"  [magenta]{report.unknown} with unrecognized severity[/magenta]")
    console.print(report.summary_line(), style=style, markup=False, highlight=False)
