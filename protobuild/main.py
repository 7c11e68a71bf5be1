"""
protobuild — CLI entrypoint.

Usage:
    python -m protobuild.main --help
    python -m protobuild.main generate
    python -m protobuild.main generate protos/greeter.proto -I protos -o src/pb
    python -m protobuild.main status
    python -m protobuild.main config check
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from protobuild import __version__
from protobuild.core.observability.logging_config import (
    LOG_FILE_ENV,
    LOG_FILE_LEVEL_ENV,
    resolve_level,
    setup_logging,
)


@click.group()
@click.version_option(version=__version__, prog_name="protobuild")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to protobuild.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """protobuild — generate gRPC/protobuf stubs from .proto files."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(LOG_FILE_ENV),
        log_file_level=os.environ.get(LOG_FILE_LEVEL_ENV),
    )


def _rel(path: Path, root: Path | None) -> str:
    """Show ``path`` relative to the project root when it's inside it."""
    if root is not None:
        try:
            return str(path.relative_to(root))
        except ValueError:
            pass
    return str(path)


@cli.command()
@click.argument("inputs", nargs=-1, type=click.Path())
@click.option(
    "--include", "-I", "search_paths", multiple=True, help="Search path for imports (repeatable)."
)
@click.option("--out-dir", "-o", "output_dir", default=None, help="Output directory.")
@click.option("--force", is_flag=True, help="Regenerate even if inputs are unchanged.")
@click.option(
    "--strict/--lenient",
    default=None,
    help="Fail the run when the formatter fails (default: from config, lenient).",
)
@click.option("--dry-run", is_flag=True, help="Show the commands without running them.")
@click.option(
    "--emit",
    type=click.Choice(["none", "lines", "make"]),
    default="none",
    help="Print the dependency declaration for the host build system.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def generate(
    ctx: click.Context,
    inputs: tuple[str, ...],
    search_paths: tuple[str, ...],
    output_dir: str | None,
    force: bool,
    strict: bool | None,
    dry_run: bool,
    emit: str,
    as_json: bool,
) -> None:
    """Generate stubs when any IDL input changed.

    Examples:

        protobuild generate

        protobuild generate protos/greeter.proto -I protos -o src/pb

        protobuild generate --force --strict
    """
    from protobuild.core.engine.tracking import render_depfile, render_directives
    from protobuild.core.use_cases.generate import run_generate

    result = run_generate(
        config_path=ctx.obj.get("config_path"),
        inputs=list(inputs) or None,
        search_paths=list(search_paths) or None,
        output_dir=output_dir,
        force=force,
        strict=strict,
        dry_run=dry_run,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)
        return

    if result.error:
        click.secho(f"❌ [{result.error_stage}] {result.error}", fg="red", err=True)
        if result.diagnostics:
            # Compiler/formatter output, exactly as the tool wrote it
            click.echo(result.diagnostics, err=True, nl=not result.diagnostics.endswith("\n"))
        if result.suggestion:
            click.echo(f"   {result.suggestion}", err=True)
        sys.exit(1)

    quiet = ctx.obj.get("quiet", False)
    root = result.project_root

    if result.declaration is not None and not dry_run:
        if emit == "lines":
            for line in render_directives(result.declaration):
                click.echo(line)
        elif emit == "make":
            click.echo(render_depfile(result.declaration), nl=False)

    if result.skipped:
        if not quiet:
            click.secho("✓ Stubs are up to date", fg="green")
        return

    report = result.report
    if report is None or report.result is None:
        click.secho("❌ Generation produced no result", fg="red", err=True)
        sys.exit(1)

    if dry_run:
        click.secho("[dry-run] Would run:", fg="cyan", bold=True)
        for receipt in report.receipts:
            click.echo(f"   {receipt.action_id}: {' '.join(receipt.command)}")
        return

    if not quiet:
        gen = report.result
        click.secho(f"\n⚡ Generated {len(gen.generated_files)} file(s)", fg="cyan", bold=True)
        click.echo(f"   Output: {_rel(gen.output_dir, root)}")
        for path in gen.generated_files:
            click.echo(f"     • {_rel(path, root)}")
        if ctx.obj.get("verbose"):
            for reason in (result.freshness.reasons if result.freshness else []):
                click.echo(f"   ↻ {reason}")
        if gen.formatted:
            click.secho("   ✓ formatted", fg="green")

    for warning in result.warnings:
        click.secho(f"⚠️  {warning}", fg="yellow", err=True)

    if not quiet:
        click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Show whether generated stubs are up to date."""
    from protobuild.core.use_cases.status import get_status

    result = get_status(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    if result.up_to_date:
        click.secho("✓ Up to date", fg="green", bold=True)
    else:
        click.secho("↻ Stale — generation will run", fg="yellow", bold=True)
        for reason in result.reasons:
            click.echo(f"   • {reason}")

    if not ctx.obj.get("quiet"):
        click.echo(f"   Watching {len(result.watched)} input(s)")
        if ctx.obj.get("verbose"):
            for path in result.watched:
                click.echo(f"     • {path}")
        if result.stamp is not None:
            click.echo(f"   Last run: {result.stamp.created_at}")


@cli.command()
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["make", "lines"]),
    default="lines",
    help="Depfile (make) or one directive per line.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def deps(ctx: click.Context, fmt: str, as_json: bool) -> None:
    """Print the files the generation step depends on."""
    from protobuild.core.use_cases.deps import describe_dependencies

    result = describe_dependencies(config_path=ctx.obj.get("config_path"), fmt=fmt)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(1)

    click.echo(result.rendered, nl=False)


@cli.group()
def config() -> None:
    """Build configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate protobuild.yml configuration."""
    from protobuild.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)
        return

    if result.valid and result.config is not None:
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        if result.config.name:
            click.echo(f"   Name: {result.config.name}")
        click.echo(f"   Inputs: {len(result.config.inputs)}")
        click.echo(f"   Output: {result.config.output_dir}")
        click.echo(f"   Formatter: {result.config.formatter.tool}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


if __name__ == "__main__":
    cli()
