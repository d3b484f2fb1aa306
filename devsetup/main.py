"""
devsetup — CLI entrypoint.

Usage:
    devsetup                 # provision (same as `devsetup run`)
    devsetup run --dry-run
    devsetup plan
    devsetup config show
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from devsetup import __version__
from devsetup.core.observability.logging_config import level_from_flags, setup_logging_from_env


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="devsetup")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to config.yml (default: $DEVSETUP_CONFIG or ~/.config/devsetup/config.yml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Provision a Debian developer workstation."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging_from_env(level_from_flags(debug=debug, verbose=verbose, quiet=quiet))

    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


def _load_config_or_exit(ctx: click.Context):
    from devsetup.core.config.loader import ConfigError, load_config

    try:
        return load_config(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--dry-run", is_flag=True, help="Check every step but change nothing.")
@click.option("--mock", is_flag=True, help="Use mock adapter (no real execution).")
@click.pass_context
def run(ctx: click.Context, as_json: bool = False, dry_run: bool = False, mock: bool = False) -> None:
    """Provision the workstation.

    Examples:

        devsetup run

        devsetup run --dry-run
    """
    from devsetup.core.use_cases.provision import run_provision

    config = _load_config_or_exit(ctx)
    result = run_provision(config, dry_run=dry_run, mock_mode=mock)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if not result.ok:
            sys.exit(1)
        return

    quiet = ctx.obj.get("quiet", False)
    verbose = ctx.obj.get("verbose", False)

    for warning in result.preflight_warnings:
        click.secho(f"⚠️  {warning}", fg="yellow")

    report = result.report
    if report is None:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    mode_label = "[dry-run] " if dry_run else "[mock] " if mock else ""
    if not quiet:
        click.secho(f"\n⚡ {mode_label}Provisioning {config.user}@{config.home}", fg="cyan", bold=True)
        click.echo()

    assert result.plan is not None
    receipts = {r.action_id: r for r in report.receipts}
    for stage in result.plan.stages:
        stage_receipts = [receipts[a.id] for a in stage.actions if a.id in receipts]
        if not stage_receipts:
            continue
        if not quiet:
            click.secho(f"   {stage.title}", fg="white", bold=True)
        for action in stage.actions:
            receipt = receipts.get(action.id)
            if receipt is None:
                continue
            if receipt.ok:
                if quiet:
                    continue
                timing = f" ({receipt.duration_ms}ms)" if receipt.duration_ms else ""
                click.secho(f"     ✓ {action.label}", fg="green", nl=False)
                click.echo(timing)
                if verbose and receipt.output:
                    for line in receipt.output.split("\n")[:10]:
                        click.echo(f"       │ {line}")
            elif receipt.failed:
                color = "yellow" if action.on_failure == "warn" else "red"
                click.secho(f"     ✗ {action.label}", fg=color)
                if receipt.error:
                    for line in receipt.error.split("\n")[:5]:
                        click.echo(f"       │ {line}")
            elif not quiet:
                click.secho(f"     ⊘ {action.label} ", fg="yellow", nl=False)
                click.echo(f"({receipt.output})")

    click.echo()
    if result.error:
        click.secho(f"❌ {result.error}", fg="red", bold=True)
        sys.exit(1)

    status_color = "yellow" if report.warnings else "green"
    click.secho(
        f"   Result: {report.succeeded} changed, {report.skipped} unchanged, "
        f"{len(report.warnings)} warning(s)",
        fg=status_color,
        bold=True,
    )

    if result.summary and not quiet and not dry_run:
        click.echo()
        for line in result.summary.lines():
            click.echo(f"   {line}")
    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def plan(ctx: click.Context, as_json: bool) -> None:
    """List the stages and steps a run would ensure."""
    from devsetup.core.services.stages import STAGE_ORDER, build_plan

    config = _load_config_or_exit(ctx)
    execution_plan = build_plan(config)

    if as_json:
        click.echo(json.dumps(execution_plan.to_dict(), indent=2))
        return

    click.secho(f"\n📋 Plan for {config.user}@{config.home}", fg="cyan", bold=True)
    click.echo(f"   Steps: {execution_plan.total_actions}")
    click.echo()

    for number, (stage_id, title) in enumerate(STAGE_ORDER, start=1):
        click.secho(f"   {number:>2}. {title}", fg="white", bold=True)
        stage = execution_plan.get_stage(stage_id)
        if stage is None:
            continue
        for action in stage.actions:
            marker = " (warn on failure)" if action.on_failure == "warn" else ""
            click.echo(f"       • {action.label} [{action.adapter}]{marker}")
    click.echo()


@cli.group()
def config() -> None:
    """Configuration commands."""


@config.command("show")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_show(ctx: click.Context, as_json: bool) -> None:
    """Show the effective configuration."""
    config_data = _load_config_or_exit(ctx).model_dump(mode="json")

    if as_json:
        click.echo(json.dumps(config_data, indent=2))
        return

    import yaml

    click.echo(yaml.safe_dump(config_data, sort_keys=False), nl=False)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    cli()
