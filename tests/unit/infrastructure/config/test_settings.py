from pathlib import Path

from pdfcheck.infrastructure.config import settings


def test_defaults_without_configuration(tmp_path: Path):
    settings.load_configuration(config_file=tmp_path / "missing.yaml", env_file=tmp_path / "missing.env")

    assert settings.get_analyzer_command() == "gemini"
    assert settings.get_model() == "gemini-2.5-pro"
    assert settings.get_analyzer_timeout() is None
    assert settings.get_history_max_entries() == 50
    assert settings.get_history_dir() == Path.home() / ".pdfcheck" / "history"
    assert settings.get_watch_interval() == 2.0


def test_yaml_nested_and_flat_keys(tmp_path: Path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        "analyzer:\n  model: gemini-2.5-flash\n  timeout_seconds: 90\n'history.max_entries': 10\nwatch:\n  interval_seconds: 0.5\n",
        encoding="utf-8",
    )

    settings.load_configuration(config_file=config_file, env_file=tmp_path / "missing.env")

    assert settings.get_model() == "gemini-2.5-flash"
    assert settings.get_analyzer_timeout() == 90.0
    assert settings.get_history_max_entries() == 10
    assert settings.get_watch_interval() == 0.5


def test_environment_overrides_yaml(tmp_path: Path, monkeypatch):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("analyzer:\n  model: from-yaml\n", encoding="utf-8")
    monkeypatch.setenv("PDFCHECK_ANALYZER_MODEL", "from-env")
    monkeypatch.setenv("PDFCHECK_HISTORY_DIR", str(tmp_path / "hist"))

    settings.load_configuration(config_file=config_file, env_file=tmp_path / "missing.env")

    assert settings.get_model() == "from-env"
    assert settings.get_history_dir() == tmp_path / "hist"


def test_dotenv_file_is_loaded(tmp_path: Path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("PDFCHECK_ANALYZER_COMMAND=npx gemini\n", encoding="utf-8")
    # Registers the variable with monkeypatch so the value loaded below is undone.
    monkeypatch.setenv("PDFCHECK_ANALYZER_COMMAND", "placeholder")
    monkeypatch.delenv("PDFCHECK_ANALYZER_COMMAND")

    settings.load_configuration(config_file=tmp_path / "missing.yaml", env_file=env_file)

    assert settings.get_analyzer_command() == "npx gemini"


def test_test_config_wins():
    settings.set_config_for_testing({"analyzer.model": "stub-model"})
    assert settings.get_model() == "stub-model"
    settings.clear_test_config()
    assert settings.get_model() == "gemini-2.5-pro"
