"""Tests for WorkflowSettings."""

import pytest
from pydantic import ValidationError

from reception_workflow.settings import WorkflowSettings, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ["LOG_LEVEL", "LOG_JSON", "ISOLATE_EVENTS", "REPLAY_MODE", "AUTO_STATE_EVENTS"]:
        monkeypatch.delenv(f"RECEPTION_WORKFLOW_{name}", raising=False)


class TestWorkflowSettings:
    """Defaults, environment overrides and validation."""

    def test_defaults(self):
        settings = WorkflowSettings(_env_file=None)

        assert settings.log_level == "INFO"
        assert settings.log_json is False
        assert settings.isolate_events is False
        assert settings.replay_mode == "handlers_only"
        assert settings.auto_state_events is False

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("RECEPTION_WORKFLOW_LOG_LEVEL", "debug")
        monkeypatch.setenv("RECEPTION_WORKFLOW_ISOLATE_EVENTS", "true")
        monkeypatch.setenv("RECEPTION_WORKFLOW_REPLAY_MODE", "reappend")
        monkeypatch.setenv("RECEPTION_WORKFLOW_AUTO_STATE_EVENTS", "1")

        settings = WorkflowSettings(_env_file=None)

        assert settings.log_level == "DEBUG"
        assert settings.isolate_events is True
        assert settings.replay_mode == "reappend"
        assert settings.auto_state_events is True

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("RECEPTION_WORKFLOW_LOG_JSON=true\n")

        settings = WorkflowSettings(_env_file=env_file)

        assert settings.log_json is True

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError, match="Invalid log level"):
            WorkflowSettings(_env_file=None, log_level="verbose")

    @pytest.mark.parametrize("value", ["Handlers-Only", "HANDLERS_ONLY", " handlers_only "])
    def test_replay_mode_normalized(self, value):
        assert WorkflowSettings(_env_file=None, replay_mode=value).replay_mode == "handlers_only"

    def test_invalid_replay_mode(self):
        with pytest.raises(ValidationError):
            WorkflowSettings(_env_file=None, replay_mode="rewrite")

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
