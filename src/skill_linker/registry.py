"""Skill registry.

A registry is the ordered list of skill names the linker manages. Each name is
both the directory name under the source root and the link name under the
destination root, so it must be a single path component.
"""

import os
from collections.abc import Iterable, Iterator
from pathlib import Path

import structlog

logger = structlog.get_logger()

SKILL_MARKER_FILE = "SKILL.md"


class InvalidSkillNameError(ValueError):
    """Raised when a skill name cannot be used as a directory name."""

    pass


def validate_skill_name(name: str) -> str:
    """Validate a skill name.

    Args:
        name: Skill name from config or the command line.

    Returns:
        The name, stripped of surrounding whitespace.

    Raises:
        InvalidSkillNameError: If the name is empty, is "." or "..", or
            contains a path separator.
    """
    stripped = name.strip()
    if not stripped:
        raise InvalidSkillNameError("Skill name must not be empty")
    if stripped in (".", ".."):
        raise InvalidSkillNameError(f"Invalid skill name: {name!r}")
    separators = {"/", os.sep} | ({os.altsep} if os.altsep else set())
    if any(sep in stripped for sep in separators):
        raise InvalidSkillNameError(
            f"Invalid skill name: {name!r}. Names must not contain path separators."
        )
    return stripped


class SkillRegistry:
    """Ordered, duplicate-free collection of skill names."""

    def __init__(self, names: Iterable[str]) -> None:
        """Initialize the registry.

        Args:
            names: Skill names in the order they should be processed.

        Raises:
            InvalidSkillNameError: If a name is invalid or listed twice.
        """
        self._names: list[str] = []
        for raw in names:
            name = validate_skill_name(raw)
            if name in self._names:
                raise InvalidSkillNameError(f"Duplicate skill name: {name}")
            self._names.append(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __repr__(self) -> str:
        return f"SkillRegistry({self._names!r})"

    @property
    def names(self) -> list[str]:
        """Registered names, in order."""
        return list(self._names)

    @staticmethod
    def source_path(name: str, source_root: Path) -> Path:
        """Directory holding the skill's files."""
        return source_root / name

    @staticmethod
    def destination_path(name: str, destination_root: Path) -> Path:
        """Path of the managed symlink for the skill."""
        return destination_root / name


def discover_skills(source_root: Path) -> list[str]:
    """Find skill directories under a source root.

    A skill directory is any direct child directory containing a SKILL.md file.

    Args:
        source_root: Directory to scan.

    Returns:
        Sorted directory names. Empty if the root does not exist.
    """
    if not source_root.is_dir():
        logger.debug("Source root not found", source_root=str(source_root))
        return []

    found = sorted(
        marker.parent.name
        for marker in source_root.glob(f"*/{SKILL_MARKER_FILE}")
        if marker.is_file()
    )
    logger.debug("Skills discovered", source_root=str(source_root), count=len(found))
    return found
