"""Typer based command line entry points for cellbind."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError

from cellbind.core.errors import ProfileError
from cellbind.core.logger import get_logger, set_level
from cellbind.core.profiles import TemplateProfile, ensure_work_dirs, get_profile, load_profiles
from cellbind.models import check_document, reference_instance
from cellbind.services.coverage import (
    load_allow_lists,
    render_coverage_report,
    render_mapping_summary,
    validate_coverage,
    write_coverage_csv,
)
from cellbind.services.export import (
    export_both_documents,
    export_contract_from_fund_plan,
    export_document,
    load_profile_registry,
)
from cellbind_io.errors import ConfigurationError, ResourceError
from cellbind_io.excel_reader import inspect_template
from cellbind_io.excel_writer import ExportResult

app = typer.Typer(help="Bind document models to fixed cells of Excel templates.")

PROFILES_OPTION = typer.Option(
    None,
    "--profiles",
    help="profiles.yaml to use (defaults to CELLBIND_PROFILES or the packaged file)",
    exists=True,
    dir_okay=False,
    resolve_path=True,
)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        help="Set global logging level (e.g. DEBUG/INFO/WARNING).",
    ),
) -> None:
    """Configure global CLI behaviour before executing commands."""

    try:
        set_level(log_level)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _load_profile(name: str, profiles: Optional[Path]) -> TemplateProfile:
    try:
        return get_profile(name, profiles)
    except ProfileError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=2) from exc


def _selected_profiles(names: List[str], profiles: Optional[Path]) -> List[TemplateProfile]:
    try:
        loaded = load_profiles(profiles)
    except ProfileError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=2) from exc
    if not names:
        return list(loaded.values())
    missing = [name for name in names if name not in loaded]
    if missing:
        typer.secho(
            f"Unknown profile(s): {', '.join(missing)} (available: {', '.join(sorted(loaded))})",
            fg=typer.colors.RED,
        )
        raise typer.Exit(code=2)
    return [loaded[name] for name in names]


@app.command("profiles")
def cli_profiles(profiles: Optional[Path] = PROFILES_OPTION) -> None:
    """List configured template profiles."""

    for profile in _selected_profiles([], profiles):
        status = "ok" if profile.template_path.exists() else "template missing"
        typer.echo(f"{profile.name:<12} {profile.display_name}  [{status}] {profile.template_path}")


def _echo_result(label: str, result: ExportResult) -> None:
    typer.echo(f"{label} finished")
    typer.echo(f"Written cells: {len(result.written)}")
    typer.echo(f"Skipped cells: {len(result.skipped)}")
    typer.echo(f"Ignored mappings: {len(result.ignored)}")
    for warning in result.warnings:
        where = f" ({warning.address})" if warning.address else ""
        typer.secho(f"Warning: {warning.message}{where}", fg=typer.colors.YELLOW)
    for failure in result.failures:
        typer.secho(f"Failed: {failure.address} {failure.data_path} [{failure.kind}] {failure.message}", fg=typer.colors.RED)
    if result.output_path:
        typer.echo(f"Output: {result.output_path}")


def _contract_profile(profiles: Optional[Path]) -> TemplateProfile:
    for profile in _selected_profiles([], profiles):
        if profile.model == "contract":
            return profile
    typer.secho("No contract profile is configured", fg=typer.colors.RED)
    raise typer.Exit(code=2)


@app.command("export")
def cli_export(
    profile_name: str = typer.Argument(..., help="Profile key, e.g. fund_plan"),
    input_json: Path = typer.Argument(
        ..., help="Document JSON (camelCase keys)", exists=True, dir_okay=False, resolve_path=True
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Output file or directory (defaults to <work>/out)", resolve_path=True
    ),
    template: Optional[Path] = typer.Option(None, "--template", help="Template override", resolve_path=True),
    dry_run: bool = typer.Option(False, "--dry-run", help="Plan the writes without producing a file"),
    check_model: bool = typer.Option(
        False, "--check-model", help="Validate the document against its model before exporting"
    ),
    from_fund_plan: bool = typer.Option(
        False, "--from-fund-plan", help="Input is a fund plan; pre-fill the contract from it"
    ),
    with_contract: bool = typer.Option(
        False, "--with-contract", help="Also export the contract pre-filled from this fund plan"
    ),
    profiles: Optional[Path] = PROFILES_OPTION,
) -> None:
    """Write a document into a clone of its template workbook."""

    logger = get_logger()
    profile = _load_profile(profile_name, profiles)

    try:
        document = json.loads(input_json.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"{input_json} is not valid JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise typer.BadParameter(f"{input_json} must contain a JSON object")

    source_kind = "fund_plan" if from_fund_plan else profile.model
    if check_model:
        problems = check_document(source_kind, document)
        if problems:
            typer.secho("Document does not match the model:", fg=typer.colors.RED)
            for problem in problems:
                typer.echo(f"  - {problem}")
            raise typer.Exit(code=2)
    if with_contract and (profile.model != "fund_plan" or from_fund_plan):
        typer.secho("--with-contract needs a fund plan profile", fg=typer.colors.RED)
        raise typer.Exit(code=2)

    target = output or ensure_work_dirs()["out"]
    label = "Dry run" if dry_run else "Export"
    if with_contract and not target.is_dir():
        typer.secho("--with-contract needs an output directory", fg=typer.colors.RED)
        raise typer.Exit(code=2)
    try:
        if with_contract:
            results = export_both_documents(profile, _contract_profile(profiles), document, target, dry_run=dry_run)
        elif from_fund_plan:
            results = (
                export_contract_from_fund_plan(profile, document, target, template=template, dry_run=dry_run),
            )
        else:
            results = (export_document(profile, document, target, template=template, dry_run=dry_run),)
    except ValidationError as exc:
        typer.secho(f"Document does not match the model: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=2) from exc
    except ConfigurationError as exc:
        typer.secho(f"Configuration error: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=2) from exc
    except ResourceError as exc:
        typer.secho(f"Export failed: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc

    for result in results:
        _echo_result(label, result)
        logger.info("CLI export completed: profile=%s output=%s", profile.name, result.output_path)
    if any(result.failures for result in results):
        raise typer.Exit(code=1)


@app.command("coverage")
def cli_coverage(
    names: Optional[List[str]] = typer.Argument(None, help="Profiles to check (default: all)"),
    csv_dir: Optional[Path] = typer.Option(
        None, "--csv", help="Directory for per-field CSV listings", file_okay=False, resolve_path=True
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Also list mapped fields"),
    profiles: Optional[Path] = PROFILES_OPTION,
) -> None:
    """Check every model field is mapped or allow-listed; exits non-zero on gaps."""

    exit_code = 0
    for profile in _selected_profiles(names or [], profiles):
        try:
            registry = load_profile_registry(profile)
            allow_lists = load_allow_lists(profile.coverage_path)
        except ConfigurationError as exc:
            typer.secho(f"{profile.name}: {exc}", fg=typer.colors.RED)
            raise typer.Exit(code=2) from exc

        report = validate_coverage(registry, reference_instance(profile.model), allow_lists)
        typer.echo(render_coverage_report(report, verbose=verbose))
        typer.echo("")
        if csv_dir is not None:
            path = write_coverage_csv(report, csv_dir / f"{profile.name}_coverage.csv")
            typer.echo(f"Field listing: {path}")
        exit_code = max(exit_code, report.exit_code)

    if exit_code:
        raise typer.Exit(code=exit_code)


@app.command("verify-mappings")
def cli_verify_mappings(
    names: Optional[List[str]] = typer.Argument(None, help="Profiles to summarize (default: all)"),
    profiles: Optional[Path] = PROFILES_OPTION,
) -> None:
    """Show verified/unverified mapping counts per section."""

    for profile in _selected_profiles(names or [], profiles):
        try:
            registry = load_profile_registry(profile)
        except ConfigurationError as exc:
            typer.secho(f"{profile.name}: {exc}", fg=typer.colors.RED)
            raise typer.Exit(code=2) from exc
        typer.echo(render_mapping_summary(registry.summary()))
        typer.echo("")


@app.command("inspect-template")
def cli_inspect_template(
    profile_name: str = typer.Argument(..., help="Profile key, e.g. fund_plan"),
    template: Optional[Path] = typer.Option(None, "--template", help="Template override", resolve_path=True),
    profiles: Optional[Path] = PROFILES_OPTION,
) -> None:
    """Check the registry against the template's layout (formulas, merges, extent)."""

    profile = _load_profile(profile_name, profiles)
    try:
        registry = load_profile_registry(profile)
        inspection = inspect_template(template or profile.template_path, registry, profile.extent)
    except ConfigurationError as exc:
        typer.secho(f"Configuration error: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=2) from exc
    except ResourceError as exc:
        typer.secho(f"Inspection failed: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc

    typer.echo(f"Sheet: {inspection.sheet}")
    typer.echo(f"Extent: {inspection.extent.max_row} rows x {inspection.extent.max_column} columns")
    typer.echo(f"Merged ranges: {inspection.merged_ranges}")
    typer.echo(f"Formula cells: {inspection.formula_cells}")
    typer.echo(f"Print area: {inspection.print_area or '-'}")
    for name in inspection.missing_sheets:
        typer.secho(f"Sheet '{name}' not in template; its cells are skipped on export", fg=typer.colors.YELLOW)
    if inspection.ok:
        typer.echo("No mapping problems found")
        return
    for finding in inspection.findings:
        typer.secho(
            f"{finding.address} {finding.data_path} [{finding.kind}] {finding.message}",
            fg=typer.colors.YELLOW,
        )
    raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
