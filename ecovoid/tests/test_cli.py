"""
Tests for the command-line interface.
"""

import json

import pytest

from ..cli import main
from ..scenarios.default import ECO_ATTACKS, NODES, PLAYER_ACTIONS


@pytest.fixture(autouse=True)
def memory_profile(monkeypatch):
    monkeypatch.delenv("ECOVOID_PROFILE_DIR", raising=False)
    monkeypatch.delenv("ECOVOID_SEED", raising=False)


class TestCLI:
    """Tests for the ecovoid command."""

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out.lower()

    def test_chapters(self, capsys):
        assert main(["chapters"]) == 0
        out = capsys.readouterr().out
        assert "chapter_1_easy" in out
        assert "locked" in out

    def test_play_locked_chapter(self, capsys):
        assert main(["play", "--chapter", "chapter_3_abyss"]) == 1
        assert "cannot be played" in capsys.readouterr().out

    def test_play_locked_scenario(self, capsys):
        assert main(["play", "--scenario", "urban"]) == 1
        assert "scenario urban cannot be played" in capsys.readouterr().out

    def test_play(self, capsys):
        assert main(["play", "--seed", "3", "--turns", "3"]) == 0
        out = capsys.readouterr().out
        assert "Score:" in out

    def test_validate_scenario_file(self, tmp_path, capsys):
        path = tmp_path / "scenario.json"
        path.write_text(json.dumps({
            "id": "copy",
            "nodes": NODES,
            "rules": {"player_actions": PLAYER_ACTIONS, "eco_attacks": ECO_ATTACKS},
        }))
        assert main(["validate", str(path)]) == 0
        assert "Ruleset is valid" in capsys.readouterr().out

    def test_validate_reports_errors(self, tmp_path, capsys):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({
            "player_actions": [
                {
                    "condition": {"suit": "spades"},
                    "effects": [{"type": "DEAL_DAMAGE", "target": "ECO", "target_stat": "HP", "value": "CARD_VALUE +"}],
                }
            ]
        }))
        assert main(["validate", str(path)]) == 1
        assert "Errors:" in capsys.readouterr().out

    def test_validate_missing_file(self, tmp_path, capsys):
        assert main(["validate", str(tmp_path / "nope.json")]) == 1
        assert "File not found" in capsys.readouterr().out
