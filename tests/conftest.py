"""Pytest fixtures for skill-linker tests."""

import os
from pathlib import Path

import pytest
import structlog

from skill_linker import config as config_module
from skill_linker.linker import SkillLinker
from skill_linker.registry import SkillRegistry

SKILL_NAMES = ["svelte5", "rust-axum-backend"]


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch, tmp_path):
    """Keep the user's real config, env vars and Sentry out of tests."""
    for key in list(os.environ):
        if key.startswith("SKILL_LINKER_"):
            monkeypatch.delenv(key)
    monkeypatch.delenv("SENTRY_DSN", raising=False)
    monkeypatch.setattr(config_module, "DEFAULT_CONFIG_PATH", tmp_path / "no-config.toml")
    yield
    structlog.reset_defaults()


@pytest.fixture
def cli_runner():
    """Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def source_root(tmp_path) -> Path:
    """Repository checkout with one directory per skill."""
    root = tmp_path / "repo"
    for name in SKILL_NAMES:
        skill_dir = root / name
        skill_dir.mkdir(parents=True)
        (skill_dir / "SKILL.md").write_text(f"# {name}\n")
    return root


@pytest.fixture
def destination_root(tmp_path) -> Path:
    """Skills directory under a fake home. Not created up front."""
    return tmp_path / "home" / ".claude" / "skills"


@pytest.fixture
def registry() -> SkillRegistry:
    return SkillRegistry(SKILL_NAMES)


@pytest.fixture
def linker(registry, source_root, destination_root) -> SkillLinker:
    return SkillLinker(registry, source_root, destination_root)


@pytest.fixture
def cli_args(source_root, destination_root) -> list[str]:
    """Group options pointing the CLI at the temporary trees."""
    args = ["--source-root", str(source_root), "--destination", str(destination_root)]
    for name in SKILL_NAMES:
        args += ["--skill", name]
    return args
