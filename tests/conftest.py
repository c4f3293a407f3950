import pytest
from pathlib import Path
from click.testing import CliRunner
from copilot_context.cli import cli


@pytest.fixture
def runner():
    """Click CLI runner fixture."""
    return CliRunner()


@pytest.fixture
def tmp_workspace(tmp_path: Path):
    """Fixture for a temporary workspace directory."""
    return tmp_path


@pytest.fixture
def config_file(tmp_workspace: Path) -> Path:
    return tmp_workspace / "context.toml"


@pytest.fixture
def initialized_workspace(runner, tmp_workspace, config_file):
    """Fixture for a workspace that already has a starter context.toml."""
    result = runner.invoke(cli, ["--config", str(config_file), "init"])
    assert result.exit_code == 0
    return tmp_workspace


@pytest.fixture
def write_tree():
    """Create files from a {relative path: text} mapping under a base dir."""

    def _write(base: Path, files: dict[str, str]) -> Path:
        for rel, text in files.items():
            path = base / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text)
        return base

    return _write
