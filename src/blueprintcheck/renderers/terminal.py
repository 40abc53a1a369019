"""
Terminal renderer using Rich.

Outputs color-coded validation reports and resolution previews.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from blueprintcheck.domain.models import Severity

if TYPE_CHECKING:
    from blueprintcheck.domain.models import BlueprintPreview, Finding
    from blueprintcheck.domain.report import ValidationReport


class TerminalRenderer:
    """
    Renders validation reports to the terminal using Rich.

    Errors are listed before warnings, each in check order, followed by
    optional resolved variables and domain tables.
    """

    SEVERITY_COLORS = {
        Severity.ERROR: "red bold",
        Severity.WARNING: "yellow",
    }

    SEVERITY_ICONS = {
        Severity.ERROR: "✗",
        Severity.WARNING: "⚠",
    }

    def __init__(
        self,
        console: Console | None = None,
        show_resolved: bool = False,
        show_remediation: bool = True,
    ) -> None:
        """
        Initialize the terminal renderer.

        Args:
            console: Rich console to use (creates new one if None).
            show_resolved: Whether to print resolved variables and domains.
            show_remediation: Whether to show remediation advice.
        """
        self.console = console or Console()
        self.show_resolved = show_resolved
        self.show_remediation = show_remediation

    def render(self, report: ValidationReport) -> None:
        """Render a validation report to the terminal."""
        self._render_header(report)

        if report.findings or report.failures:
            self._render_findings(report)
        else:
            self.console.print("\n[green]✓ No issues found[/green]\n")

        if self.show_resolved:
            self._render_resolved(report)

        self._render_footer(report)

    def _render_header(self, report: ValidationReport) -> None:
        self.console.print()
        self.console.print(
            Panel(
                f"[bold]Blueprint validation[/bold]\n"
                f"Target: [cyan]{escape(report.target)}[/cyan]\n"
                f"Report ID: [dim]{report.report_id}[/dim]",
                title="blueprintcheck",
                border_style="blue",
            )
        )

    def _render_findings(self, report: ValidationReport) -> None:
        for severity, title in ((Severity.ERROR, "Errors"), (Severity.WARNING, "Warnings")):
            findings = report.findings_by_severity(severity)
            failures = report.failures if severity == Severity.ERROR else []
            if not findings and not failures:
                continue

            color = self.SEVERITY_COLORS[severity]
            self.console.print()
            self.console.print(f"[{color}]{title}:[/{color}]")
            for finding in findings:
                self._render_finding(finding)
            for failure in failures:
                self.console.print(f"  [{color}]{self.SEVERITY_ICONS[severity]}[/] {escape(failure)}")

    def _render_finding(self, finding: Finding) -> None:
        color = self.SEVERITY_COLORS[finding.severity]
        icon = self.SEVERITY_ICONS[finding.severity]

        self.console.print(
            f"  [{color}]{icon}[/] {escape(finding.message)} [dim]({finding.rule_id})[/dim]"
        )
        if self.show_remediation and finding.remediation:
            self.console.print(f"    [green]→ {escape(finding.remediation)}[/green]")

    def _render_resolved(self, report: ValidationReport) -> None:
        if report.resolved_variables:
            self.console.print()
            self.console.print(variables_table(report.resolved_variables))

        if report.domains:
            table = Table(title="Domains", title_justify="left")
            table.add_column("Service", style="cyan")
            table.add_column("Port", justify="right")
            table.add_column("Host")
            table.add_column("Path", style="dim")
            for domain in report.domains:
                table.add_row(
                    domain.service_name,
                    str(domain.port),
                    Text(domain.host or ""),
                    Text(domain.path or ""),
                )
            self.console.print()
            self.console.print(table)

    def _render_footer(self, report: ValidationReport) -> None:
        if report.valid:
            status = "[green]✓ VALID[/green]"
        else:
            status = "[red]✗ INVALID[/red]"

        summary = report.summary
        self.console.print()
        self.console.print(
            f"Status: {status} | "
            f"Errors: {summary.errors} | "
            f"Warnings: {summary.warnings} | "
            f"Duration: {report.duration_ms:.1f}ms | "
            f"Rules executed: {len(report.rules_executed)}"
        )
        self.console.print()

    def render_preview(self, preview: BlueprintPreview, source: str) -> None:
        """Render a resolved descriptor."""
        self.console.print()
        self.console.print(
            Panel(
                f"[bold]Resolution preview[/bold]\nTarget: [cyan]{escape(source)}[/cyan]",
                title="blueprintcheck",
                border_style="blue",
            )
        )
        self.console.print(variables_table(preview.variables))

        if preview.env:
            table = Table(title="Environment", title_justify="left")
            table.add_column("Key", style="cyan")
            table.add_column("Value")
            for entry in preview.env:
                table.add_row(entry.key, Text(entry.value))
            self.console.print(table)

        if preview.unresolved:
            self.console.print()
            self.console.print("[yellow]Unresolved:[/yellow]")
            for path, bodies in preview.unresolved.items():
                fragments = ", ".join("${" + body + "}" for body in sorted(bodies))
                self.console.print(f"  ⚠ {escape(path)}: {escape(fragments)}")
        self.console.print()


def variables_table(variables: dict[str, str]) -> Table:
    """Two-column table of resolved variables."""
    table = Table(title="Resolved variables", title_justify="left")
    table.add_column("Variable", style="cyan")
    table.add_column("Value")
    for key, value in variables.items():
        table.add_row(key, Text(value))
    return table
