"""Symlink installer for skill directories.

Keeps a destination directory's symlinks in sync with the skill registry:
one link per skill, named after the skill, pointing at the skill's source
directory. Every operation is best effort per entry: a problem with one skill
is recorded in the report and the remaining skills are still processed.
"""

import os
from enum import Enum
from pathlib import Path
from typing import Literal

import structlog
from pydantic import BaseModel, Field

from .registry import SkillRegistry

logger = structlog.get_logger()


class LinkerError(Exception):
    """Raised when a run cannot proceed at all (e.g. the skills directory can't be created)."""

    pass


class LinkState(str, Enum):
    """State of a skill's destination path."""

    ABSENT = "absent"
    LINKED = "linked"
    STALE = "stale"
    CONFLICT = "conflict"


class Outcome(str, Enum):
    """Result of processing one skill."""

    # install
    LINKED = "linked"
    ALREADY_LINKED = "already_linked"
    RELINKED = "relinked"
    MISSING_SOURCE = "missing_source"
    CONFLICT = "conflict"
    # uninstall
    REMOVED = "removed"
    UNMANAGED = "unmanaged"
    NOT_FOUND = "not_found"
    # either
    FAILED = "failed"


_CHANGING_OUTCOMES = {Outcome.LINKED, Outcome.RELINKED, Outcome.REMOVED}


class EntryResult(BaseModel):
    """Outcome of install or uninstall for a single skill."""

    skill: str
    outcome: Outcome
    source: Path
    destination: Path
    previous_target: str | None = Field(
        default=None, description="Target of the link that was replaced or removed"
    )
    detail: str | None = Field(default=None, description="Error message for failed entries")
    dry_run: bool = False

    @property
    def changed(self) -> bool:
        """Whether the filesystem was modified for this entry."""
        return self.outcome in _CHANGING_OUTCOMES and not self.dry_run


class LinkReport(BaseModel):
    """Per-entry results of one install or uninstall run."""

    action: Literal["install", "uninstall"]
    dry_run: bool = False
    results: list[EntryResult] = Field(default_factory=list)

    @property
    def changed_count(self) -> int:
        return sum(1 for r in self.results if r.changed)

    @property
    def has_conflicts(self) -> bool:
        return any(r.outcome == Outcome.CONFLICT for r in self.results)

    @property
    def has_failures(self) -> bool:
        return any(r.outcome == Outcome.FAILED for r in self.results)

    def with_outcome(self, outcome: Outcome) -> list[EntryResult]:
        """Results that ended in the given outcome."""
        return [r for r in self.results if r.outcome == outcome]


class EntryStatus(BaseModel):
    """Read-only view of one skill's source and destination."""

    skill: str
    state: LinkState
    source: Path
    destination: Path
    source_exists: bool
    target: str | None = None


def read_link(path: Path) -> str | None:
    """Return the raw target of a symlink, or None if path is not a symlink."""
    try:
        return os.readlink(path)
    except OSError:
        return None


def points_to(link: Path, target: Path) -> bool:
    """Check whether a symlink points at target.

    True when the raw link text equals the target path, or when both resolve
    to the same real path.
    """
    raw = read_link(link)
    if raw is None:
        return False
    if Path(raw) == target:
        return True
    try:
        return link.resolve(strict=True) == target.resolve(strict=True)
    except (OSError, RuntimeError):
        # Dangling link or symlink loop
        return False


class SkillLinker:
    """Creates and removes the managed symlinks for a skill registry.

    Progress is logged through structlog. When used outside the CLI, call
    ``observability.configure_logging()`` first; structlog's unconfigured
    defaults print every event, debug included, to stdout.
    """

    def __init__(
        self,
        registry: SkillRegistry,
        source_root: Path,
        destination_root: Path,
        dry_run: bool = False,
    ) -> None:
        """Initialize the linker.

        Args:
            registry: Skills to manage, in processing order.
            source_root: Directory containing one subdirectory per skill.
            destination_root: Directory where the symlinks are created.
            dry_run: Report what would happen without touching the filesystem.
        """
        self.registry = registry
        self.source_root = Path(source_root).expanduser().absolute()
        self.destination_root = Path(destination_root).expanduser().absolute()
        self.dry_run = dry_run

    def source_path(self, name: str) -> Path:
        return self.registry.source_path(name, self.source_root)

    def destination_path(self, name: str) -> Path:
        return self.registry.destination_path(name, self.destination_root)

    # =========================================================================
    # Inspection
    # =========================================================================

    def inspect(self, name: str) -> LinkState:
        """Classify the destination of a skill without modifying anything."""
        dest = self.destination_path(name)
        if dest.is_symlink():
            if points_to(dest, self.source_path(name)):
                return LinkState.LINKED
            return LinkState.STALE
        if dest.exists():
            return LinkState.CONFLICT
        return LinkState.ABSENT

    def status(self) -> list[EntryStatus]:
        """Inspect every registered skill."""
        statuses = []
        for name in self.registry:
            source = self.source_path(name)
            dest = self.destination_path(name)
            statuses.append(
                EntryStatus(
                    skill=name,
                    state=self.inspect(name),
                    source=source,
                    destination=dest,
                    source_exists=source.is_dir(),
                    target=read_link(dest),
                )
            )
        return statuses

    # =========================================================================
    # Install
    # =========================================================================

    def install(self) -> LinkReport:
        """Link every registered skill into the destination directory.

        Returns:
            Report with one result per registered skill.

        Raises:
            LinkerError: If the destination directory cannot be created.
        """
        if not self.dry_run:
            try:
                self.destination_root.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise LinkerError(
                    f"Cannot create skills directory {self.destination_root}: {e}"
                ) from e

        report = LinkReport(action="install", dry_run=self.dry_run)
        for name in self.registry:
            try:
                report.results.append(self._install_one(name))
            except OSError as e:
                # e.g. EACCES from is_dir()/exists() on an unreadable path
                logger.warning("Failed to inspect skill", skill=name, error=str(e))
                report.results.append(self._result(name, Outcome.FAILED, detail=str(e)))

        logger.info(
            "Install finished",
            skills=len(report.results),
            changed=report.changed_count,
            conflicts=len(report.with_outcome(Outcome.CONFLICT)),
            dry_run=self.dry_run,
        )
        return report

    def _result(
        self,
        name: str,
        outcome: Outcome,
        previous_target: str | None = None,
        detail: str | None = None,
    ) -> EntryResult:
        return EntryResult(
            skill=name,
            outcome=outcome,
            source=self.source_path(name),
            destination=self.destination_path(name),
            previous_target=previous_target,
            detail=detail,
            dry_run=self.dry_run,
        )

    def _install_one(self, name: str) -> EntryResult:
        source = self.source_path(name)
        dest = self.destination_path(name)

        def result(
            outcome: Outcome, previous_target: str | None = None, detail: str | None = None
        ) -> EntryResult:
            return self._result(name, outcome, previous_target=previous_target, detail=detail)

        if not source.is_dir():
            logger.info("Skill source missing", skill=name, source=str(source))
            return result(Outcome.MISSING_SOURCE)

        previous_target = None
        if dest.is_symlink():
            if points_to(dest, source):
                logger.debug("Skill already linked", skill=name, destination=str(dest))
                return result(Outcome.ALREADY_LINKED)

            previous_target = read_link(dest)
            if not self.dry_run:
                try:
                    dest.unlink()
                except OSError as e:
                    logger.warning("Failed to remove stale link", skill=name, error=str(e))
                    return result(Outcome.FAILED, previous_target=previous_target, detail=str(e))
        elif dest.exists():
            logger.info("Destination is not a symlink", skill=name, destination=str(dest))
            return result(Outcome.CONFLICT)

        if not self.dry_run:
            try:
                dest.symlink_to(source, target_is_directory=True)
            except OSError as e:
                logger.warning("Failed to create link", skill=name, error=str(e))
                return result(Outcome.FAILED, previous_target=previous_target, detail=str(e))

        if previous_target is not None:
            logger.info(
                "Skill relinked",
                skill=name,
                destination=str(dest),
                previous_target=previous_target,
            )
            return result(Outcome.RELINKED, previous_target=previous_target)

        logger.info("Skill linked", skill=name, destination=str(dest), source=str(source))
        return result(Outcome.LINKED)

    # =========================================================================
    # Uninstall
    # =========================================================================

    def uninstall(self) -> LinkReport:
        """Remove the managed symlink of every registered skill.

        Symlinks are removed whatever they point at. Anything that is not a
        symlink is left in place and reported as unmanaged.
        """
        report = LinkReport(action="uninstall", dry_run=self.dry_run)
        for name in self.registry:
            try:
                report.results.append(self._uninstall_one(name))
            except OSError as e:
                logger.warning("Failed to inspect skill", skill=name, error=str(e))
                report.results.append(self._result(name, Outcome.FAILED, detail=str(e)))

        logger.info(
            "Uninstall finished",
            skills=len(report.results),
            changed=report.changed_count,
            dry_run=self.dry_run,
        )
        return report

    def _uninstall_one(self, name: str) -> EntryResult:
        dest = self.destination_path(name)

        if dest.is_symlink():
            target = read_link(dest)
            if not self.dry_run:
                try:
                    dest.unlink()
                except OSError as e:
                    logger.warning("Failed to remove link", skill=name, error=str(e))
                    return self._result(
                        name, Outcome.FAILED, previous_target=target, detail=str(e)
                    )
            logger.info("Skill unlinked", skill=name, destination=str(dest))
            return self._result(name, Outcome.REMOVED, previous_target=target)

        if dest.exists():
            logger.info("Skipping unmanaged destination", skill=name, destination=str(dest))
            return self._result(name, Outcome.UNMANAGED)

        return self._result(name, Outcome.NOT_FOUND)
