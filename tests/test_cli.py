"""Tests for CLI commands."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner
from pagestage.cli import cli


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep config auto-discovery away from the developer's working tree."""
    monkeypatch.chdir(tmp_path)


def _invoke(snapshot_file: Path, *args: str):
    runner = CliRunner()
    return runner.invoke(cli, ["-s", str(snapshot_file), *args])


class TestResolveCommand:
    """Tests for the resolve command."""

    def test_prints_composed_outline(self, snapshot_file: Path) -> None:
        """Print the layout tree with page content spliced in."""
        result = _invoke(snapshot_file, "resolve", "shoes")

        assert result.exit_code == 0
        assert result.output.splitlines() == [
            "[layout] body (lbody)",
            "  [layout] header (lheader)",
            "    [page] Heading (shoes-title)",
            "  [layout] main (lmain)",
            "    [page] Grid (shoes-grid)",
            "      [page] Card (shoes-card)",
            "  [layout] footer (lfooter)",
        ]

    def test_warns_on_empty_required_slots(self, snapshot_file: Path) -> None:
        result = _invoke(snapshot_file, "resolve", "products")

        assert result.exit_code == 0
        assert 'Warning: Required slot "header" is empty' in result.output
        assert 'Warning: Required slot "content" is empty' in result.output

    def test_page_without_layout(self, snapshot_file: Path) -> None:
        result = _invoke(snapshot_file, "resolve", "home")

        assert result.exit_code == 0
        assert result.output.startswith("Layout: none\n")
        assert "  [page] Text (home-text)" in result.output

    def test_json_output(self, snapshot_file: Path) -> None:
        result = _invoke(snapshot_file, "resolve", "shoes", "--json")

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["hasLayout"] is True
        assert list(data["slotContents"]) == ["header", "content"]

    def test_fails_on_unknown_page(self, snapshot_file: Path) -> None:
        result = _invoke(snapshot_file, "resolve", "missing")

        assert result.exit_code == 1
        assert "Error: page not found: missing" in result.output

    def test_fails_on_missing_snapshot(self, tmp_path: Path) -> None:
        result = _invoke(tmp_path / "nope.json", "resolve", "home")

        assert result.exit_code == 1
        assert "Snapshot file not found" in result.output

    def test_fails_on_invalid_snapshot(self, tmp_path: Path) -> None:
        snapshot_file = tmp_path / "broken.json"
        snapshot_file.write_text("{not json")

        result = _invoke(snapshot_file, "resolve", "home")

        assert result.exit_code == 1
        assert "Invalid snapshot JSON" in result.output


class TestUrlCommand:
    """Tests for the url command."""

    def test_prints_nested_url(self, snapshot_file: Path) -> None:
        """Layout prefix comes before the absolute ancestor base."""
        result = _invoke(snapshot_file, "url", "shoes")

        assert result.exit_code == 0
        assert result.output == "/shop/products/shoes\n"

    def test_absolute_slug(self, snapshot_file: Path) -> None:
        result = _invoke(snapshot_file, "url", "products")

        assert result.output == "/products\n"

    def test_fails_on_unknown_page(self, snapshot_file: Path) -> None:
        result = _invoke(snapshot_file, "url", "missing")

        assert result.exit_code == 1


class TestSlotsCommand:
    """Tests for the slots command."""

    def test_lists_slots(self, snapshot_file: Path) -> None:
        result = _invoke(snapshot_file, "slots", "main")

        assert result.exit_code == 0
        assert result.output.splitlines() == [
            "header (required)",
            "content (required) - Main content",
        ]

    def test_layout_without_slots(self, tmp_path: Path) -> None:
        snapshot_file = tmp_path / "empty.json"
        snapshot_file.write_text(
            json.dumps({"layouts": [{"id": "bare", "name": "Bare"}]}),
        )

        result = _invoke(snapshot_file, "slots", "bare")

        assert result.exit_code == 0
        assert result.output == "Layout Bare has no slots\n"

    def test_fails_on_unknown_layout(self, snapshot_file: Path) -> None:
        result = _invoke(snapshot_file, "slots", "missing")

        assert result.exit_code == 1
        assert "layout not found: missing" in result.output


class TestCheckParentCommand:
    """Tests for the check-parent command."""

    def test_allowed(self, snapshot_file: Path) -> None:
        result = _invoke(snapshot_file, "check-parent", "home", "shoes")

        assert result.exit_code == 0
        assert "Allowed (depth 2)" in result.output

    def test_refused_on_cycle(self, snapshot_file: Path) -> None:
        result = _invoke(snapshot_file, "check-parent", "products", "shoes")

        assert result.exit_code == 1
        assert "Refused: Parent assignment would create a circular reference" in result.output

    def test_respects_configured_depth(self, tmp_path: Path, snapshot_file: Path) -> None:
        config_file = tmp_path / "pagestage.toml"
        config_file.write_text("[routing]\nmax_nesting_depth = 2\n")

        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["-c", str(config_file), "-s", str(snapshot_file), "check-parent", "home", "shoes"],
        )

        assert result.exit_code == 1
        assert "at most 2 levels deep" in result.output


class TestConfigOption:
    """Tests for the --config option."""

    def test_fails_on_invalid_config(self, tmp_path: Path, snapshot_file: Path) -> None:
        config_file = tmp_path / "pagestage.toml"
        config_file.write_text("[server]\nport = \"eighty\"\n")

        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["-c", str(config_file), "-s", str(snapshot_file), "url", "home"],
        )

        assert result.exit_code == 1
        assert "server.port must be an integer" in result.output
