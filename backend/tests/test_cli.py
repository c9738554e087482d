"""
Tests for the metainspect CLI.

Runs the real extractors against plain files so no external tools
(ffprobe/ffmpeg) are required.
"""

import json

import pytest

from metainspect.cli import build_parser, main


@pytest.fixture
def text_file(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hello world")
    return path


def run_cli(argv):
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


class TestInspectCommand:
    def test_inspect_prints_sections(self, text_file, capsys):
        code = run_cli(["inspect", str(text_file), "--no-preview"])

        out = capsys.readouterr().out
        assert code == 0
        assert "notes.txt" in out
        assert "[General]" in out
        assert "[Type]" in out
        assert "text/plain" in out

    def test_inspect_json(self, text_file, capsys):
        code = run_cli(["inspect", str(text_file), "--json", "--no-preview"])

        payload = json.loads(capsys.readouterr().out)
        assert code == 0
        assert payload["item_name"] == "notes.txt"
        assert [s["title"] for s in payload["sections"]] == ["General", "Type"]

    def test_missing_file_exits_with_failure(self, tmp_path, capsys):
        code = run_cli(["inspect", str(tmp_path / "gone.mov")])

        assert code == 1
        assert "Could not access the selected file." in capsys.readouterr().err

    def test_asset_id_requires_catalog(self, text_file, capsys):
        code = run_cli(["inspect", str(text_file), "--asset-id", "A1B2"])

        assert code == 4
        assert "--catalog" in capsys.readouterr().err

    def test_asset_lookup_with_catalog(self, text_file, tmp_path, capsys):
        catalog = tmp_path / "library.json"
        catalog.write_text(json.dumps({"assets": [{"identifier": "A1B2", "latitude": 1.5, "longitude": 2.5}]}))

        code = run_cli([
            "inspect", str(text_file), "--asset-id", "A1B2", "--catalog", str(catalog), "--no-preview",
        ])

        out = capsys.readouterr().out
        assert code == 0
        assert "[Photos Asset]" in out
        assert "1.500000, 2.500000" in out

    def test_unusable_preferences_db(self, text_file, tmp_path):
        code = run_cli(["inspect", str(text_file), "--db", str(tmp_path / "no-dir" / "prefs.db")])
        assert code == 4


class TestPreferencesCommand:
    def test_show_and_update(self, tmp_path, capsys):
        db_path = str(tmp_path / "prefs.db")

        assert run_cli(["preferences", "--db", db_path, "--raw", "on"]) == 0
        capsys.readouterr()

        assert run_cli(["preferences", "--db", db_path]) == 0
        prefs = json.loads(capsys.readouterr().out)
        assert prefs == {"include_raw_metadata": True, "show_only_essential": False}


class TestParser:
    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_inspect_defaults(self):
        args = build_parser().parse_args(["inspect", "/tmp/a.mov"])
        assert args.preview is True
        assert args.raw is False
        assert args.asset_id is None
