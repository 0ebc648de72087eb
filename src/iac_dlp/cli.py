"""Command-line interface for iac-dlp.

Anonymizes infrastructure-as-code so it can be handed to an external reviewer
without leaking identifiers or secrets.

Commands:
    sanitize  Anonymize a file, a directory or stdin and emit the result
    stats     Show what would be anonymized without emitting the text

Configuration:
    Supports config files: iac-dlp.toml, .iac-dlp.yml, etc.
    CLI flags override config file values.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from . import __version__
from .anonymizer import AnonymizationResult, create_anonymizer
from .bundler import SourceBundle, SourceError, bundle_sources
from .config import REPORT_SCHEMA_VERSION, AnonymizerConfig
from .config_loader import load_config, merge_cli_with_config
from .utils import add_line_numbers, normalize_line_endings

# Initialize CLI app
app = typer.Typer(
    name="iac-dlp",
    help="""Anonymize infrastructure-as-code before sharing it.

Structural identifiers become stable aliases (CLOUD_ID_1, NETWORK_TOPOGRAPHY_2),
secrets become [REDACTED_SECRET], audit-relevant values stay visible.

Examples:
    iac-dlp sanitize main.tf
    iac-dlp sanitize ./infra --line-numbers -o sanitized.txt
    cat main.tf | iac-dlp sanitize -
    iac-dlp stats ./infra
""",
    add_completion=False,
    no_args_is_help=True,
)

# Status output goes to stderr; stdout carries the sanitized text
console = Console(stderr=True)


def create_spinner_progress() -> Progress:
    """Create a simple spinner progress for indeterminate tasks."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"iac-dlp version {__version__}")
        raise typer.Exit()


def read_source(source: str, merged: dict[str, Any]) -> SourceBundle:
    """
    Read the input named on the command line.

    Args:
        source: File path, directory path, or "-" for stdin
        merged: Merged CLI/config values

    Returns:
        SourceBundle holding the text to anonymize
    """
    if source == "-":
        return SourceBundle(text=normalize_line_endings(sys.stdin.read()))

    return bundle_sources(
        Path(source),
        include_extensions=merged["include_extensions"],
        exclude_globs=merged["exclude_globs"],
        max_file_bytes=merged["max_file_bytes"],
        respect_gitignore=merged["respect_gitignore"],
    )


def config_search_dir(source: str) -> Path:
    """Directory searched for a config file."""
    if source != "-":
        path = Path(source)
        if path.is_dir():
            return path
        if path.is_file():
            return path.parent
    return Path.cwd()


def run_pipeline(
    source: str,
    config_file: Path | None,
    **cli_values: Any,
) -> tuple[SourceBundle, AnonymizationResult, dict[str, Any], AnonymizerConfig]:
    """Load config, read the source and anonymize it."""
    project_config = load_config(config_search_dir(source), config_file)
    if project_config._config_file:
        console.print(f"[dim]Using config: {project_config._config_file.name}[/dim]")

    merged = merge_cli_with_config(project_config, **cli_values)
    anonymizer_config = AnonymizerConfig.from_dict(merged["anonymizer_config"])

    with create_spinner_progress() as progress:
        task = progress.add_task("Reading source...", total=None)
        bundle = read_source(source, merged)
        progress.update(task, description="Anonymizing...")
        result = create_anonymizer(anonymizer_config).anonymize(bundle.text)
        progress.update(task, description="[green]✓[/green] Anonymized")

    return bundle, result, merged, anonymizer_config


def build_report(
    bundle: SourceBundle,
    result: AnonymizationResult,
    anonymizer_config: AnonymizerConfig,
) -> dict[str, Any]:
    """Build the JSON report (sorted keys, no sanitized text)."""
    return {
        "anonymizer": anonymizer_config.to_dict(),
        "bundle": bundle.stats.to_dict(),
        "files": [f.to_dict() for f in bundle.files],
        "redaction_count": result.redaction_count,
        "schema_version": REPORT_SCHEMA_VERSION,
        "secrets_redacted": result.secrets_redacted,
        "types": dict(sorted(result.types.items())),
    }


def print_summary(bundle: SourceBundle, result: AnonymizationResult) -> None:
    """Print redaction statistics to stderr."""
    if bundle.files:
        console.print(f"[green]✓[/green] Bundled {len(bundle.files)} file(s)")
    elif bundle.stats.files_scanned:
        console.print("[yellow]Warning: No files found matching criteria.[/yellow]")

    console.print()
    console.print("[cyan]Redactions applied:[/cyan]")
    console.print(f"  Distinct values aliased: {result.redaction_count}")
    for label, count in sorted(result.types.items(), key=lambda x: (-x[1], x[0])):
        console.print(f"    {label}: {count}")
    console.print(f"  Secrets hard-redacted: {result.secrets_redacted}")


@app.command()
def sanitize(
    source: str = typer.Argument(
        ...,
        help="File or directory to anonymize, or '-' to read stdin.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write sanitized text to this file. [default: stdout]",
        dir_okay=False,
    ),
    report: Path | None = typer.Option(
        None,
        "--report",
        help="Write redaction statistics as JSON to this file.",
        dir_okay=False,
    ),
    line_numbers: bool = typer.Option(
        False,
        "--line-numbers",
        "-n",
        help="Number lines of the output (restarting at each file header).",
    ),
    # === Configuration File ===
    config_file: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file (iac-dlp.toml or .iac-dlp.yml).",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    # === Anonymizer Options ===
    ignore: str | None = typer.Option(
        None,
        "--ignore",
        help="Extra values to keep visible (comma-separated).",
    ),
    skip_category: str | None = typer.Option(
        None,
        "--skip-category",
        help="Alias categories to turn off (comma-separated, e.g. 'Env_Indicator').",
    ),
    max_value_length: int | None = typer.Option(
        None,
        "--max-value-length",
        help="Longest quoted value that is scanned. [default: 4096]",
    ),
    # === Directory Options ===
    include_ext: str | None = typer.Option(
        None,
        "--include-ext",
        "-i",
        help="Include only these extensions (comma-separated, e.g. '.tf,.tfvars').",
    ),
    exclude_glob: str | None = typer.Option(
        None,
        "--exclude-glob",
        "-e",
        help="Exclude paths matching these globs (comma-separated).",
    ),
    max_file_bytes: int | None = typer.Option(
        None,
        "--max-file-bytes",
        help="Skip files larger than this (bytes). [default: 1MB]",
    ),
    no_gitignore: bool = typer.Option(
        False,
        "--no-gitignore",
        help="Ignore .gitignore rules.",
    ),
    # === Misc ===
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Do not print the redaction summary.",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Anonymize infrastructure code and emit the sanitized text.

    \b
    EXAMPLES:
      iac-dlp sanitize main.tf
      iac-dlp sanitize ./infra -o sanitized.txt --report report.json
      iac-dlp sanitize ./infra --ignore corp-shared-vpc --skip-category Env_Indicator
    """
    try:
        bundle, result, merged, anonymizer_config = run_pipeline(
            source,
            config_file,
            include_ext=include_ext,
            exclude_glob=exclude_glob,
            max_file_bytes=max_file_bytes,
            no_gitignore=no_gitignore,
            line_numbers=line_numbers if line_numbers else None,
            ignore=ignore,
            skip_category=skip_category,
            max_value_length=max_value_length,
        )

        text = result.sanitized_text
        if merged["line_numbers"]:
            text = add_line_numbers(text)

        if output is not None:
            output.write_text(text, encoding="utf-8")
        else:
            typer.echo(text)

        if report is not None:
            report_data = build_report(bundle, result, anonymizer_config)
            report.write_text(json.dumps(report_data, indent=2, sort_keys=True), encoding="utf-8")

        if not quiet:
            print_summary(bundle, result)
            if output is not None:
                console.print(f"\n[green]✓[/green] Sanitized output written to {output}")

    except SourceError as e:
        console.print(f"[red]Error reading source: {e}[/red]")
        raise typer.Exit(1) from None
    except (ValueError, OSError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None


@app.command()
def stats(
    source: str = typer.Argument(
        ...,
        help="File or directory to analyze, or '-' to read stdin.",
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file (iac-dlp.toml or .iac-dlp.yml).",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    ignore: str | None = typer.Option(
        None,
        "--ignore",
        help="Extra values to keep visible (comma-separated).",
    ),
    include_ext: str | None = typer.Option(
        None,
        "--include-ext",
        "-i",
        help="Include only these extensions (comma-separated).",
    ),
    no_gitignore: bool = typer.Option(
        False,
        "--no-gitignore",
        help="Ignore .gitignore rules.",
    ),
) -> None:
    """Show redaction statistics without emitting the sanitized text.

    \b
    EXAMPLES:
      iac-dlp stats main.tf
      iac-dlp stats ./infra --include-ext .tf
    """
    try:
        bundle, result, _, _ = run_pipeline(
            source,
            config_file,
            include_ext=include_ext,
            no_gitignore=no_gitignore,
            ignore=ignore,
        )

        for f in bundle.files:
            console.print(f"  {f.relative_path} ({f.size_bytes:,} bytes)")
        print_summary(bundle, result)

    except SourceError as e:
        console.print(f"[red]Error reading source: {e}[/red]")
        raise typer.Exit(1) from None
    except (ValueError, OSError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
