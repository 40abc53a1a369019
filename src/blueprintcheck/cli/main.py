"""
Main CLI entry point for blueprintcheck.

Usage:
    blueprintcheck validate ./blueprints/grafana
    blueprintcheck validate ./blueprints --format json
    blueprintcheck resolve ./blueprints/grafana --domain grafana.example.com
    blueprintcheck init
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.text import Text

from blueprintcheck import __version__
from blueprintcheck.config import CheckSettings, configure_logging, render_default_config
from blueprintcheck.core.constants import CONFIG_FILENAME, DESCRIPTOR_FILENAME
from blueprintcheck.domain.exceptions import BlueprintParseError, ConfigError

app = typer.Typer(
    name="blueprintcheck",
    help="blueprintcheck: validate and preview deployment blueprints",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
logger = logging.getLogger(__name__)


class OutputFormat(str, Enum):
    """Output format options."""

    terminal = "terminal"
    json = "json"


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"blueprintcheck version {__version__}")
        raise typer.Exit()


def load_settings(config: Path | None, **overrides: Any) -> CheckSettings:
    """Build settings, turning configuration problems into exit code 2."""
    try:
        return CheckSettings.load(config_path=config, **overrides)
    except ConfigError as e:
        console.print(f"[red]Configuration error:[/red] {escape(e.message)}", highlight=False)
        raise typer.Exit(2)


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    blueprintcheck: validate and preview deployment blueprints.

    A blueprint is a directory holding a compose manifest and a template.toml
    descriptor. Validation checks both documents and their consistency.

    Examples:

        blueprintcheck validate ./blueprints/grafana

        blueprintcheck validate ./blueprints --format json --output report.json

        blueprintcheck resolve ./blueprints/grafana
    """


@app.command()
def validate(
    path: Annotated[
        Path,
        typer.Argument(
            help="Blueprint directory, or a directory of blueprints.",
            exists=True,
            file_okay=False,
        ),
    ],
    format: Annotated[
        Optional[OutputFormat],
        typer.Option(
            "--format",
            "-f",
            help="Output format.",
        ),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option(
            "--output",
            "-o",
            help="Output file path for JSON (default: stdout).",
        ),
    ] = None,
    strict: Annotated[
        bool,
        typer.Option(
            "--strict",
            help="Exit non-zero on warnings too.",
        ),
    ] = False,
    config: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help=f"Path to {CONFIG_FILENAME} config file.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            help="Enable debug logging.",
        ),
    ] = False,
    no_color: Annotated[
        bool,
        typer.Option(
            "--no-color",
            help="Disable colored output.",
        ),
    ] = False,
    show_resolved: Annotated[
        bool,
        typer.Option(
            "--show-resolved",
            help="Print resolved variables and domains.",
        ),
    ] = False,
) -> None:
    """
    Validate one or more blueprints.

    Exits 1 when any blueprint has errors, or warnings with --strict.

    Examples:

        blueprintcheck validate ./blueprints/grafana

        blueprintcheck validate ./blueprints --strict
    """
    from blueprintcheck.adapters.fs import FileSystemAdapter
    from blueprintcheck.domain.models import DomainSchema
    from blueprintcheck.engine.resolver import VariableResolver
    from blueprintcheck.engine.validator import BlueprintValidator
    from blueprintcheck.renderers.json_renderer import JsonRenderer
    from blueprintcheck.renderers.terminal import TerminalRenderer

    overrides: dict[str, Any] = {}
    if verbose:
        overrides["verbose"] = True
    if no_color:
        overrides["no_color"] = True
    if strict:
        overrides["check"] = {"fail_on_warnings": True}
    output_overrides: dict[str, Any] = {}
    if format is not None:
        output_overrides["format"] = format.value
    if show_resolved:
        output_overrides["show_resolved"] = True
    if output_overrides:
        overrides["output"] = output_overrides

    settings = load_settings(config, **overrides)
    configure_logging(verbose=settings.verbose, no_color=settings.no_color)
    if settings.config_path:
        logger.debug("Using config %s", settings.config_path)

    fs = FileSystemAdapter()
    blueprints = fs.find_blueprints(path)
    if not blueprints:
        console.print(f"[yellow]No blueprints found in {path}[/yellow]")
        raise typer.Exit(1)

    validator = BlueprintValidator(
        resolver=VariableResolver(schema=DomainSchema(domain=settings.resolve.domain)),
        reserved_network=settings.check.reserved_network,
        disabled_rules=settings.check.disabled_rules,
    )
    reports = [validator.validate(fs.load_blueprint(directory)) for directory in blueprints]

    if settings.output.format == OutputFormat.json.value:
        renderer = JsonRenderer()
        payload = reports if len(reports) > 1 else reports[0]
        if output:
            renderer.render_to_file(payload, output)
            console.print(f"[green]Report written to {output}[/green]")
        else:
            typer.echo(renderer.render(payload))
    else:
        terminal = TerminalRenderer(
            console=Console(no_color=settings.no_color),
            show_resolved=settings.output.show_resolved,
        )
        for report in reports:
            terminal.render(report)

    fail_on_warnings = settings.check.fail_on_warnings
    if any(report.exit_code(fail_on_warnings) for report in reports):
        raise typer.Exit(1)


@app.command()
def resolve(
    path: Annotated[
        Path,
        typer.Argument(
            help="Blueprint directory.",
            exists=True,
            file_okay=False,
        ),
    ],
    domain: Annotated[
        Optional[str],
        typer.Option(
            "--domain",
            "-d",
            help="Value for ${domain} instead of a random placeholder.",
        ),
    ] = None,
    seed: Annotated[
        Optional[int],
        typer.Option(
            "--seed",
            help="Seed for reproducible generated values.",
        ),
    ] = None,
    format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format.",
        ),
    ] = OutputFormat.terminal,
    config: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help=f"Path to {CONFIG_FILENAME} config file.",
        ),
    ] = None,
) -> None:
    """
    Preview a blueprint's descriptor with every expression resolved.

    Generated secrets are placeholders and change on every run unless
    --seed is given.

    Examples:

        blueprintcheck resolve ./blueprints/grafana

        blueprintcheck resolve ./blueprints/grafana --domain grafana.example.com
    """
    from blueprintcheck.adapters.fs import FileSystemAdapter
    from blueprintcheck.domain.models import DomainSchema
    from blueprintcheck.engine.entropy import SeededRandom
    from blueprintcheck.engine.resolver import VariableResolver
    from blueprintcheck.renderers.json_renderer import JsonRenderer
    from blueprintcheck.renderers.terminal import TerminalRenderer

    settings = load_settings(config)
    configure_logging(verbose=settings.verbose, no_color=settings.no_color)

    fs = FileSystemAdapter()
    try:
        descriptor = fs.read_toml(path / DESCRIPTOR_FILENAME)
    except BlueprintParseError as e:
        console.print(f"[red]Error:[/red] {escape(e.message)}", highlight=False)
        raise typer.Exit(1)

    resolver = VariableResolver(
        rng=SeededRandom(seed) if seed is not None else None,
        schema=DomainSchema(domain=domain or settings.resolve.domain),
    )
    preview = resolver.preview(descriptor)

    if format == OutputFormat.json:
        typer.echo(JsonRenderer().render_preview(preview, str(path)))
    else:
        TerminalRenderer(console=Console(no_color=settings.no_color)).render_preview(preview, str(path))


@app.command()
def helpers() -> None:
    """List the ${...} helpers available in descriptor variables."""
    from rich.table import Table

    from blueprintcheck.engine.resolver import HELPERS

    table = Table(title="Template helpers")
    table.add_column("Helper", style="cyan")
    table.add_column("Syntax", style="white")
    table.add_column("Description")

    for spec in HELPERS.values():
        table.add_row(spec.name, Text(spec.syntax), Text(spec.description))

    console.print(table)
    console.print(f"\nTotal: {len(HELPERS)} helpers")


@app.command()
def rules() -> None:
    """
    List all validation rules.

    Shows rule IDs, names, severity levels and check groups.
    """
    from rich.table import Table

    from blueprintcheck.rules import DEFAULT_RULES

    table = Table(title="blueprintcheck validation rules")
    table.add_column("Rule ID", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("Severity", style="bold")
    table.add_column("Group")

    severity_styles = {
        "ERROR": "red bold",
        "WARNING": "yellow",
    }

    for rule in DEFAULT_RULES:
        meta = rule.metadata
        severity_style = severity_styles.get(meta.severity.value, "white")

        table.add_row(
            meta.rule_id,
            meta.name,
            f"[{severity_style}]{meta.severity.value}[/]",
            meta.group,
        )

    console.print(table)
    console.print(f"\nTotal: {len(DEFAULT_RULES)} rules")


@app.command()
def init(
    path: Annotated[
        Path,
        typer.Argument(
            help=f"Directory to create the {CONFIG_FILENAME} config file in.",
        ),
    ] = Path("."),
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite existing config file.",
        ),
    ] = False,
) -> None:
    """
    Initialize blueprintcheck configuration.

    Examples:

        blueprintcheck init

        blueprintcheck init ./blueprints --force
    """
    config_path = path / CONFIG_FILENAME

    if config_path.exists() and not force:
        console.print(
            f"[yellow]Config file already exists: {config_path}[/yellow]\n"
            f"Use --force to overwrite."
        )
        raise typer.Exit(1)

    config_path.write_text(render_default_config(), encoding="utf-8")
    console.print(f"[green]✓ Created {config_path}[/green]")


if __name__ == "__main__":
    app()
