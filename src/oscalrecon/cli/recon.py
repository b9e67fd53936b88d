"""OSCAL Recon (oscal-recon) - SSP reconciliation and sanitization.

Documents go to stdout (or --output); progress and summaries go to stderr.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.console import Console

console = Console(stderr=True)


def _config(ctx: click.Context, overrides: dict | None = None) -> dict:
    from ..core.config import get_effective_config

    return get_effective_config(ctx.obj["project"], overrides)


def _load(path: str) -> dict:
    from ..core.documents import DocumentLoadError, load_document

    try:
        return load_document(Path(path))
    except DocumentLoadError as e:
        raise click.ClickException(str(e)) from e


def _emit(document: dict, output: str | None, config: dict) -> None:
    from ..core.documents import dump_document, write_document

    indent = config["output"]["indent"]
    if output:
        write_document(document, Path(output), indent)
        console.print(f"  [green]Wrote[/green] {output}")
    else:
        click.echo(dump_document(document, indent=indent))


def _parse_names(names: tuple[str, ...]) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for item in names:
        label, sep, name = item.partition("=")
        if not sep or not label.strip() or not name.strip():
            raise click.BadParameter(f"expected LABEL=NAME, got {item!r}", param_hint="--name")
        parsed[label.strip()] = name.strip()
    return parsed


@click.group()
@click.option(
    "--project", "-p",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    help="Project path holding .oscal-recon/config.yaml",
)
@click.pass_context
def recon_cli(ctx: click.Context, project: str) -> None:
    """OSCAL Recon - reconcile catalogs with existing SSPs and emit clean OSCAL."""
    ctx.ensure_object(dict)
    ctx.obj["project"] = Path(project)


@recon_cli.command()
@click.pass_context
def init(ctx: click.Context) -> None:
    """Write a starter .oscal-recon/config.yaml."""
    from ..core.config import initialize_project

    config_path = initialize_project(ctx.obj["project"])
    console.print(f"  [green]Initialized[/green] {config_path}")


@recon_cli.command()
@click.option("--catalog", "-c", type=click.Path(exists=True, dir_okay=False), required=True, help="OSCAL catalog")
@click.option("--ssp", "-s", type=click.Path(exists=True, dir_okay=False), required=True, help="Existing SSP")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write result to a file")
@click.pass_context
def compare(ctx: click.Context, catalog: str, ssp: str, output: str | None) -> None:
    """Classify catalog controls as new/changed/unchanged against an SSP.

    Example: oscal-recon compare -c catalog.json -s existing-ssp.json -o comparison.json
    """
    from ..core.catalog import extract_catalog_controls
    from ..core.reconcile import compare_with_existing_ssp

    config = _config(ctx)
    result = compare_with_existing_ssp(extract_catalog_controls(_load(catalog)), _load(ssp))

    stats = result.stats
    console.print(
        f"  [cyan]{stats.total}[/cyan] controls: "
        f"[green]{stats.new} new[/green], [yellow]{stats.changed} changed[/yellow], "
        f"{stats.unchanged} unchanged ({stats.existing_total} in existing SSP)"
    )
    _emit(result.dump(exclude_none=True), output, config)


@recon_cli.command("multi-compare")
@click.option("--baseline", type=click.Path(exists=True, dir_okay=False), help="Baseline report")
@click.option("--csp1", type=click.Path(exists=True, dir_okay=False), help="First CSP report")
@click.option("--csp2", type=click.Path(exists=True, dir_okay=False), help="Second CSP report")
@click.option("--name", "names", multiple=True, help="Display name as LABEL=NAME (repeatable)")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write result to a file")
@click.pass_context
def multi_compare(
    ctx: click.Context,
    baseline: str | None,
    csp1: str | None,
    csp2: str | None,
    names: tuple[str, ...],
    output: str | None,
) -> None:
    """Compare a baseline and up to two CSP reports control by control.

    Example: oscal-recon multi-compare --baseline a.json --csp1 b.json --name csp1="Vendor B"
    """
    from ..core.multi_compare import compare_multiple_reports

    paths = {"baseline": baseline, "csp1": csp1, "csp2": csp2}
    if not any(paths.values()):
        raise click.UsageError("Provide at least one of --baseline, --csp1, --csp2")

    config = _config(ctx)
    report_names = {**config["reports"]["labels"], **_parse_names(names)}
    reports = {label: _load(path) if path else None for label, path in paths.items()}

    result = compare_multiple_reports(reports, report_names)
    console.print(
        f"  [cyan]{result.total_controls}[/cyan] controls: {result.identical} identical, "
        f"[yellow]{result.different} different[/yellow], [red]{result.missing_in_some} missing in some[/red]"
    )
    _emit(result.dump(exclude_none=True), output, config)


@recon_cli.command()
@click.argument("ssp", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write result to a file")
@click.pass_context
def extract(ctx: click.Context, ssp: str, output: str | None) -> None:
    """Extract control records and system info from an SSP."""
    from ..core.reconcile import extract_ssp

    config = _config(ctx)
    result = extract_ssp(_load(ssp))
    console.print(f"  [cyan]{result['totalControls']}[/cyan] controls extracted")
    _emit(result, output, config)


@recon_cli.command()
@click.argument("document", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write result to a file")
@click.pass_context
def sanitize(ctx: click.Context, document: str, output: str | None) -> None:
    """Sanitize every string in a document to the OSCAL string pattern."""
    from ..utils.sanitize import sanitize_tree

    config = _config(ctx)
    cleaned = sanitize_tree(_load(document), preserve_keys=config["sanitize"]["preserve_empty"])
    _emit(cleaned, output, config)


@recon_cli.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.option("--catalog", "-c", type=click.Path(exists=True, dir_okay=False), help="Catalog for SSP metadata")
@click.option("--catalog-url", type=str, help="Catalog URL recorded in import-profile")
@click.option("--title", type=str, help="SSP title")
@click.option("--doc-version", type=str, help="SSP document version")
@click.option("--strict/--no-strict", default=None, help="Emit only OSCAL schema fields")
@click.option("--integrity/--no-integrity", default=None, help="Add a file integrity hash")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write result to a file")
@click.pass_context
def generate(
    ctx: click.Context,
    source: str,
    catalog: str | None,
    catalog_url: str | None,
    title: str | None,
    doc_version: str | None,
    strict: bool | None,
    integrity: bool | None,
    output: str | None,
) -> None:
    """Generate an OSCAL SSP from a comparison result or an existing SSP.

    Example: oscal-recon generate comparison.json -c catalog.json -o ssp.json
    """
    from ..core.catalog import catalog_metadata
    from ..core.extractor import extract_controls
    from ..core.ssp_builder import generate_ssp
    from ..core.system_info import extract_system_info

    overrides: dict = {"ssp": {}}
    if strict is not None:
        overrides["ssp"]["strict"] = strict
    if integrity is not None:
        overrides["ssp"]["integrity"] = integrity
    config = _config(ctx, overrides)

    data = _load(source)
    if "system-security-plan" in data:
        controls = extract_controls(data)
        system_info = extract_system_info(data)
    else:
        controls = data.get("controls") or []
        system_info = data.get("systemInfo")

    metadata = catalog_metadata(_load(catalog)) if catalog else None

    try:
        document = generate_ssp(
            controls,
            system_info,
            metadata=metadata,
            title=title,
            version=doc_version,
            catalog_url=catalog_url,
            strict=config["ssp"]["strict"],
            oscal_version=config["ssp"]["oscal_version"],
            integrity=config["ssp"]["integrity"],
            preserve_keys=config["sanitize"]["preserve_empty"],
        )
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    _emit(document, output, config)


@recon_cli.command()
@click.argument("document", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def verify(ctx: click.Context, document: str) -> None:
    """Verify a document's file integrity hash. Exits 1 unless valid."""
    from ..core.integrity import verify_integrity_hash

    config = _config(ctx)
    check = verify_integrity_hash(_load(document))

    if check.valid:
        console.print(f"  [green]VALID[/green] {check.reason}")
    elif check.has_hash:
        console.print(f"  [red]INVALID[/red] {check.reason}")
    else:
        console.print(f"  [yellow]NO HASH[/yellow] {check.reason}")

    _emit(check.dump(), None, config)
    if not check.valid:
        sys.exit(1)


def main() -> None:
    recon_cli()


if __name__ == "__main__":
    main()
