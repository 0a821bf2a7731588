"""
Tests for the CLI -- `revstream log` and `revstream config`

These tests validate:
- Command registration and dispatch
- Exit codes (ok, anomalies under --strict, git problems)
- Export of the final snapshot
"""

import json

import pytest

from revstream.cli import RevstreamCLI, main
from revstream.commands import get_registered_commands
from revstream.commands.log_cmd import EXIT_ANOMALIES, EXIT_GIT_ERROR, EXIT_OK
from revstream.core.records import RevisionSnapshot
from tests.factories import LogStreamFactory, make_id


@pytest.fixture
def cli(tmp_path, history):
    """RevstreamCLI whose git is replaced by the eight-commit fake history."""
    instance = RevstreamCLI(tmp_path)
    instance.git = history.fake_git(working_directory=tmp_path)
    return instance


class TestRegistration:

    def test_commands_registered(self, non_git_dir):
        main(["-p", str(non_git_dir), "config"])
        assert get_registered_commands() == ["log", "config"]

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage:" in capsys.readouterr().out


class TestLogCommand:

    def test_lists_records(self, cli, capsys):
        assert cli._log_cmd.log(output_format="list") == EXIT_OK
        out = capsys.readouterr().out
        assert "Commit 8" in out
        assert "8 revision(s)" in out

    def test_json_output(self, cli, capsys):
        cli._log_cmd.log(output_format="json")
        data = json.loads(capsys.readouterr().out)
        assert len(data["items"]) == 8
        assert data["items"][0]["id"] == make_id(8)

    def test_max_results(self, cli, capsys):
        cli._log_cmd.log(max_results=5, output_format="json")
        data = json.loads(capsys.readouterr().out)
        assert len(data["items"]) == 5

    def test_export(self, cli, tmp_path, capsys):
        target = tmp_path / "history.json"
        cli._log_cmd.log(export=str(target), output_format="list")
        snapshot = RevisionSnapshot.from_json(target.read_bytes())
        assert len(snapshot) == 8
        assert snapshot.final

    def test_left_right_arguments(self, cli, capsys):
        cli._log_cmd.log(left_right=["main", "topic"], output_format="list")
        _, arguments = cli.git.calls[0]
        assert arguments[-2:] == ["--left-right", "main...topic"]

    def test_strict_with_anomalies(self, tmp_path, capsys):
        history = LogStreamFactory().add(make_id(2), parents_token="x" * 50).add(make_id(1))
        instance = RevstreamCLI(tmp_path)
        instance.git = history.fake_git(working_directory=tmp_path)

        assert instance._log_cmd.log(strict=True, output_format="list") == EXIT_ANOMALIES
        assert instance._log_cmd.log(strict=False, output_format="list") == EXIT_OK
        assert "malformed_parents" in capsys.readouterr().out

    def test_zero_publish_every_in_project_config(self, tmp_path, history, capsys):
        (tmp_path / ".revstream").mkdir()
        (tmp_path / ".revstream" / "config.yaml").write_text("walk:\n  publish_every: 0\n")
        instance = RevstreamCLI(tmp_path)
        instance.git = history.fake_git(working_directory=tmp_path)

        assert instance._log_cmd.log(strict=True, output_format="json") == EXIT_OK
        data = json.loads(capsys.readouterr().out)
        assert len(data["items"]) == 8
        assert data["anomalies"] == []

    def test_not_a_repository(self, non_git_dir, capsys):
        assert main(["-p", str(non_git_dir), "log"]) == EXIT_GIT_ERROR
        assert "Not a git repository" in capsys.readouterr().out

    def test_real_repository(self, temp_git_repo, capsys):
        assert main(["-p", str(temp_git_repo), "log", "--format", "json"]) == EXIT_OK
        data = json.loads(capsys.readouterr().out)
        assert [item["subject"] for item in data["items"]] == ["Commit 3", "Commit 2", "Commit 1"]


class TestConfigCommand:

    def test_show(self, non_git_dir, capsys):
        assert main(["-p", str(non_git_dir), "config"]) == 0
        assert "Configuration:" in capsys.readouterr().out

    def test_set(self, non_git_dir, capsys):
        assert main(["-p", str(non_git_dir), "config", "--set", "walk.publish_every=50"]) == 0
        assert (non_git_dir / ".revstream" / "config.yaml").exists()
        assert "Set walk.publish_every = 50" in capsys.readouterr().out

    def test_set_without_equals(self, non_git_dir, capsys):
        assert main(["-p", str(non_git_dir), "config", "--set", "walk.publish_every"]) == 1

    def test_set_invalid(self, non_git_dir, capsys):
        assert main(["-p", str(non_git_dir), "config", "--set", "display.format=xml"]) == 1
        assert "Unknown format" in capsys.readouterr().out
