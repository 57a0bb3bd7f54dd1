"""CLI entry point for fsblog."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.syntax import Syntax
from rich.table import Table

from fsblog.config import DEFAULT_CONFIG_TEMPLATE, BuildOptions, FsblogConfig, load_config, resolve_build_options
from fsblog.dev import DEFAULT_PORT, run_dev
from fsblog.errors import FsblogError
from fsblog.log import setup_logging
from fsblog.pipeline import BuildReport, build_site, clean_build_artifacts

app = typer.Typer(
    name="fsblog",
    help="File-system style static blog generator for markdown vaults.",
)

config_app = typer.Typer(help="Manage fsblog configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: FsblogConfig | None = None


def _get_config() -> FsblogConfig:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to fsblog.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    setup_logging(_config.log_level, _config.log_format)


def _resolve_options(
    vault: str | None,
    out: str | None,
    exclude: list[str] | None,
    new_within_days: int | None,
    recent_limit: int | None,
) -> BuildOptions:
    try:
        return resolve_build_options(
            _get_config(),
            vault_dir=vault,
            out_dir=out,
            exclude=exclude,
            new_within_days=new_within_days,
            recent_limit=recent_limit,
        )
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def _display_report(report: BuildReport) -> None:
    table = Table(title="Build")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right")
    table.add_row("total", str(report.total_docs))
    table.add_row("rendered", str(report.rendered_docs))
    table.add_row("skipped", str(report.skipped_docs))
    table.add_row("files written", str(report.written_files))
    if report.removed_docs or report.moved_docs:
        table.add_row("removed", str(report.removed_docs))
        table.add_row("moved", str(report.moved_docs))
    rprint(table)


VaultOpt = Annotated[str | None, typer.Option("--vault", help="Markdown vault directory")]
OutOpt = Annotated[str | None, typer.Option("--out", help="Output directory")]
ExcludeOpt = Annotated[list[str] | None, typer.Option("--exclude", help="Glob to exclude (repeatable)")]
NewWithinOpt = Annotated[int | None, typer.Option("--new-within-days", min=0, help="NEW badge window in days")]
RecentOpt = Annotated[int | None, typer.Option("--recent-limit", min=0, help="Docs in the Recent folder")]


@app.command()
def build(
    vault: VaultOpt = None,
    out: OutOpt = None,
    exclude: ExcludeOpt = None,
    new_within_days: NewWithinOpt = None,
    recent_limit: RecentOpt = None,
) -> None:
    """Build the static site from the vault."""
    options = _resolve_options(vault, out, exclude, new_within_days, recent_limit)
    rprint(f"[bold]Building[/bold] {options.vault_dir} -> {options.out_dir}")
    try:
        report = build_site(options)
    except FsblogError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    _display_report(report)
    rprint(
        f"[green]Done.[/green] total={report.total_docs} "
        f"rendered={report.rendered_docs} skipped={report.skipped_docs}"
    )


@app.command()
def dev(
    vault: VaultOpt = None,
    out: OutOpt = None,
    exclude: ExcludeOpt = None,
    new_within_days: NewWithinOpt = None,
    recent_limit: RecentOpt = None,
    port: int = typer.Option(DEFAULT_PORT, "--port", help="Dev server port"),
) -> None:
    """Build, watch the vault and serve the output with rebuilds."""
    options = _resolve_options(vault, out, exclude, new_within_days, recent_limit)
    rprint(f"[bold]Dev server[/bold] http://localhost:{port} (Ctrl+C to stop)")
    run_dev(options, port=port)


@app.command()
def clean(
    out: OutOpt = None,
) -> None:
    """Remove the output directory and the build cache."""
    options = _resolve_options(None, out, None, None, None)
    clean_build_artifacts(options.out_dir, options.cache_path)
    rprint(f"[green]Removed[/green] {options.out_dir} and build cache")


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False, sort_keys=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default fsblog.yaml in current directory."""
    target = Path("fsblog.yaml")
    if target.exists() and not force:
        rprint("[yellow]fsblog.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")
