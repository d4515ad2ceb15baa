from click.testing import CliRunner

import stackpilot.cli as cli_module


class FakePilot:
    captured = {}

    def __init__(self, settings, config_path=None):
        FakePilot.captured["settings"] = settings
        FakePilot.captured["config_path"] = config_path

    def start(self):
        FakePilot.captured["command"] = "start"
        return 0

    def stop(self):
        FakePilot.captured["command"] = "stop"
        return 1

    def update(self):
        FakePilot.captured["command"] = "update"
        return 0


def test_cli_uses_workdir_config_and_allows_cli_override(tmp_path, monkeypatch):
    (tmp_path / ".stackpilot.yml").write_text(
        "project_name: qdrant\n"
        "display_name: Qdrant\n"
        "retry_count: 1\n"
        "settle_seconds: 4\n",
        encoding="utf-8",
    )
    FakePilot.captured.clear()
    monkeypatch.setattr(cli_module, "StackPilot", FakePilot)

    result = CliRunner().invoke(
        cli_module.main,
        ["update", "--workdir", str(tmp_path), "--retry-count", "3"],
    )

    assert result.exit_code == 0
    settings = FakePilot.captured["settings"]
    assert FakePilot.captured["command"] == "update"
    assert settings.project_name == "qdrant"
    assert settings.display_name == "Qdrant"
    assert settings.retry_count == 3
    assert settings.settle_seconds == 4.0
    assert settings.descriptor_path == tmp_path.resolve() / "docker-compose.yml"
    assert FakePilot.captured["config_path"] == (tmp_path / ".stackpilot.yml").resolve()


def test_cli_defaults_to_current_directory(tmp_path, monkeypatch):
    FakePilot.captured.clear()
    monkeypatch.setattr(cli_module, "StackPilot", FakePilot)
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli_module.main, ["start", "--readiness-timeout", "30"])

    assert result.exit_code == 0
    settings = FakePilot.captured["settings"]
    assert settings.workdir == tmp_path.resolve()
    assert settings.readiness_timeout == 30.0
    assert settings.project_name == "milvus"
    assert FakePilot.captured["config_path"] is None


def test_cli_passes_exit_code_through(tmp_path, monkeypatch):
    FakePilot.captured.clear()
    monkeypatch.setattr(cli_module, "StackPilot", FakePilot)

    result = CliRunner().invoke(cli_module.main, ["stop", "--workdir", str(tmp_path)])

    assert result.exit_code == 1
    assert FakePilot.captured["command"] == "stop"


def test_cli_rejects_unknown_config_keys(tmp_path, monkeypatch):
    (tmp_path / ".stackpilot.yml").write_text("color: blue\n", encoding="utf-8")
    monkeypatch.setattr(cli_module, "StackPilot", FakePilot)

    result = CliRunner().invoke(cli_module.main, ["stop", "--workdir", str(tmp_path)])

    assert result.exit_code == 1
    assert "Unknown configuration keys: color" in result.output


def test_standalone_commands_are_click_commands(tmp_path, monkeypatch):
    FakePilot.captured.clear()
    monkeypatch.setattr(cli_module, "StackPilot", FakePilot)

    result = CliRunner().invoke(cli_module.update, ["--workdir", str(tmp_path)])

    assert result.exit_code == 0
    assert FakePilot.captured["command"] == "update"
