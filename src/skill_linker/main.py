#!/usr/bin/env python3
"""skill-linker - CLI entry point."""

import sys
from pathlib import Path
from typing import Any, NoReturn

import click
import structlog

from . import __version__
from .config import SkillLinkerConfig, load_config
from .linker import EntryResult, LinkerError, LinkReport, LinkState, Outcome, SkillLinker
from .observability import configure_logging, init_sentry
from .registry import discover_skills

logger = structlog.get_logger()

USAGE = """Usage: skill-linker [install|uninstall]

  install    Create symlinks in the skills directory for each skill
  uninstall  Remove symlinks from the skills directory"""

# Exit status when --strict is set and a skill ended in a conflict or failed
STRICT_FAILURE_EXIT_CODE = 2


class InvalidInvocationError(click.UsageError):
    """Unknown subcommand. Exits with status 1 rather than click's default 2."""

    exit_code = 1


class SkillLinkerGroup(click.Group):
    """Command group that reports unknown subcommands with exit status 1."""

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as e:
            raise InvalidInvocationError(e.message, ctx) from e


def _fail(message: str) -> NoReturn:
    click.echo(click.style("Error: ", fg="red", bold=True) + message, err=True)
    sys.exit(1)


def _get_config(ctx: click.Context) -> SkillLinkerConfig:
    config: SkillLinkerConfig = ctx.obj
    return config


def _make_linker(config: SkillLinkerConfig, dry_run: bool = False) -> SkillLinker:
    return SkillLinker(
        config.registry(),
        source_root=config.source_root,
        destination_root=config.destination_root,
        dry_run=dry_run,
    )


def _finish(report: LinkReport, strict: bool) -> None:
    if strict and (report.has_conflicts or report.has_failures):
        sys.exit(STRICT_FAILURE_EXIT_CODE)


def _warn_if_no_sources(linker: SkillLinker) -> None:
    if len(linker.registry) and not any(linker.source_path(n).is_dir() for n in linker.registry):
        click.echo(
            click.style("Warning: ", fg="yellow", bold=True)
            + f"no skill directories found under {linker.source_root}. "
            "Set source_root in the config file or pass --source-root."
        )
        click.echo()


@click.group(cls=SkillLinkerGroup, invoke_without_command=True)
@click.version_option(version=__version__, prog_name="skill-linker")
@click.option(
    "--config",
    "config_file",
    envvar="SKILL_LINKER_CONFIG",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to config file",
)
@click.option(
    "--source-root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory containing the skill directories (overrides config file)",
)
@click.option(
    "--destination",
    "destination_root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Skills directory to link into (overrides config file)",
)
@click.option(
    "--skill",
    "skills",
    multiple=True,
    help="Skill to manage (can be repeated; replaces the configured list)",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: Path | None,
    source_root: Path | None,
    destination_root: Path | None,
    skills: tuple[str, ...],
    verbose: bool,
) -> None:
    """skill-linker - Link skill directories into your agent's skills folder.

    Each registered skill directory is symlinked into the skills directory
    (~/.claude/skills by default). Safe to re-run: links that are already
    correct are left alone.

    Configuration is loaded from (in priority order):
    1. Command line arguments
    2. Environment variables (SKILL_LINKER_*)
    3. Config file (~/.config/skill-linker/config.toml or --config)
    """
    if ctx.invoked_subcommand is None:
        click.echo(USAGE, err=True)
        ctx.exit(1)

    try:
        config = load_config(config_file)

        updates: dict[str, Any] = {}
        if source_root:
            updates["source_root"] = source_root
        if destination_root:
            updates["destination_root"] = destination_root
        if skills:
            updates["skills"] = list(skills)
        if updates:
            config = config.model_copy(update=updates)

        # model_copy skips validation; check the registry now
        config.registry()
    except (ValueError, OSError) as e:
        _fail(str(e))

    sentry_enabled = init_sentry()
    configure_logging("DEBUG" if verbose else config.log_level, sentry_enabled=sentry_enabled)
    logger.debug(
        "Configuration loaded",
        skills=config.skills,
        source_root=str(config.source_root),
        destination_root=str(config.destination_root),
    )

    ctx.obj = config


# =============================================================================
# INSTALL / UNINSTALL
# =============================================================================


def _echo_install_result(result: EntryResult) -> None:
    if result.outcome == Outcome.LINKED:
        click.echo(click.style("Linked: ", fg="green") + f"{result.skill} -> {result.destination}")
    elif result.outcome == Outcome.RELINKED:
        click.echo(
            click.style("Updating link: ", fg="yellow")
            + f"{result.skill} (was -> {result.previous_target})"
        )
        click.echo(click.style("Linked: ", fg="green") + f"{result.skill} -> {result.destination}")
    elif result.outcome == Outcome.ALREADY_LINKED:
        click.echo(f"Already linked: {result.skill}")
    elif result.outcome == Outcome.MISSING_SOURCE:
        click.echo(
            click.style("Warning: ", fg="yellow", bold=True)
            + f"{result.source} does not exist, skipping"
        )
    elif result.outcome == Outcome.CONFLICT:
        click.echo(
            click.style("Error: ", fg="red", bold=True)
            + f"{result.destination} exists and is not a symlink. Remove it manually."
        )
    else:
        click.echo(
            click.style("Error: ", fg="red", bold=True)
            + f"failed to link {result.skill}: {result.detail}"
        )


def _echo_uninstall_result(result: EntryResult) -> None:
    if result.outcome == Outcome.REMOVED:
        click.echo(click.style("Removed: ", fg="green") + result.skill)
    elif result.outcome == Outcome.UNMANAGED:
        click.echo(
            click.style("Skipping: ", fg="yellow")
            + f"{result.destination} is not a symlink (not managed by skill-linker)"
        )
    elif result.outcome == Outcome.NOT_FOUND:
        click.echo(f"Not found: {result.skill}")
    else:
        click.echo(
            click.style("Error: ", fg="red", bold=True)
            + f"failed to remove {result.skill}: {result.detail}"
        )


def _echo_dry_run_banner() -> None:
    click.echo(click.style("Dry run: ", fg="cyan", bold=True) + "no changes will be made.")
    click.echo()


@cli.command()
@click.option("--dry-run", is_flag=True, help="Show what would change without changing it")
@click.option(
    "--strict/--no-strict",
    default=None,
    help="Exit with status 2 if any skill conflicts or fails",
)
@click.pass_context
def install(ctx: click.Context, dry_run: bool, strict: bool | None) -> None:
    """Create symlinks in the skills directory for each skill."""
    config = _get_config(ctx)
    linker = _make_linker(config, dry_run=dry_run)

    if dry_run:
        _echo_dry_run_banner()

    try:
        report = linker.install()
    except LinkerError as e:
        _fail(str(e))

    for result in report.results:
        _echo_install_result(result)

    click.echo()
    click.echo("Done. Restart your agent to pick up the new skills.")
    _finish(report, config.strict if strict is None else strict)


@cli.command()
@click.option("--dry-run", is_flag=True, help="Show what would change without changing it")
@click.option(
    "--strict/--no-strict",
    default=None,
    help="Exit with status 2 if any link could not be removed",
)
@click.pass_context
def uninstall(ctx: click.Context, dry_run: bool, strict: bool | None) -> None:
    """Remove symlinks from the skills directory."""
    config = _get_config(ctx)
    linker = _make_linker(config, dry_run=dry_run)

    if dry_run:
        _echo_dry_run_banner()

    report = linker.uninstall()
    for result in report.results:
        _echo_uninstall_result(result)

    click.echo()
    click.echo("Done. Restart your agent to apply changes.")
    _finish(report, config.strict if strict is None else strict)


# =============================================================================
# INSPECTION COMMANDS
# =============================================================================

_STATE_STYLES = {
    LinkState.LINKED: ("linked", "green"),
    LinkState.STALE: ("stale", "yellow"),
    LinkState.CONFLICT: ("conflict", "red"),
    LinkState.ABSENT: ("not linked", None),
}


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the link state of each skill."""
    config = _get_config(ctx)
    linker = _make_linker(config)

    click.echo(click.style("Skill Links", fg="cyan", bold=True))
    click.echo(f"  Source: {linker.source_root}")
    click.echo(f"  Skills dir: {linker.destination_root}")
    click.echo()
    _warn_if_no_sources(linker)

    for entry in linker.status():
        label, color = _STATE_STYLES[entry.state]
        line = f"  {click.style(entry.skill, bold=True)}: {click.style(label, fg=color)}"
        if entry.state == LinkState.STALE:
            line += f" (-> {entry.target})"
        elif entry.state == LinkState.CONFLICT:
            line += " (not a symlink)"
        if not entry.source_exists:
            line += click.style(" [source missing]", fg="yellow")
        click.echo(line)


@cli.command("list")
@click.pass_context
def list_skills(ctx: click.Context) -> None:
    """List registered skills and unregistered skill directories."""
    config = _get_config(ctx)
    linker = _make_linker(config)
    _warn_if_no_sources(linker)

    click.echo(click.style("Registered Skills", fg="cyan", bold=True))
    for name in linker.registry:
        if linker.source_path(name).is_dir():
            click.echo(f"  {name} " + click.style("[ok]", fg="green"))
        else:
            click.echo(f"  {name} " + click.style("[missing]", fg="yellow"))

    unregistered = [
        name for name in discover_skills(linker.source_root) if name not in linker.registry
    ]
    if unregistered:
        click.echo()
        click.echo(click.style("Unregistered skill directories", fg="cyan", bold=True))
        for name in unregistered:
            click.echo(f"  {name}")
        click.echo("\nAdd them to the 'skills' list in the config file to manage them.")


@cli.command()
def version() -> None:
    """Show version information."""
    click.echo(f"skill-linker v{__version__}")


if __name__ == "__main__":
    cli()
