import pytest
from pydantic import ValidationError

from knowledge_core_lib.impl.settings import LoggingSettings, MlflowSettings, PolicySettings


def test_policy_settings_defaults():
    settings = PolicySettings()
    assert settings.default_allow is True
    assert settings.policy_file is None
    assert settings.fallback_approver_roles == ["chat_owner", "dept_admin", "tenant_admin"]


def test_policy_settings_from_env(monkeypatch):
    monkeypatch.setenv("POLICY_DEFAULT_ALLOW", "false")
    monkeypatch.setenv("POLICY_POLICY_FILE", "/etc/policies.json")

    settings = PolicySettings()

    assert settings.default_allow is False
    assert settings.policy_file == "/etc/policies.json"


def test_logging_level_is_normalized(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    assert LoggingSettings().level == "DEBUG"


def test_invalid_logging_level_rejected(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    with pytest.raises(ValidationError):
        LoggingSettings()


def test_mlflow_tracing_disabled_by_default():
    assert MlflowSettings().tracing_enabled is False


def test_mlflow_tracking_uri_is_normalised(monkeypatch):
    monkeypatch.setenv("MLFLOW_TRACKING_URI", "http://mlflow.internal:5000/")
    monkeypatch.setenv("MLFLOW_TRACING_ENABLED", "true")

    settings = MlflowSettings()

    assert settings.tracking_uri == "http://mlflow.internal:5000"
    assert settings.tracing_enabled is True
    with pytest.raises(ValidationError):
        MlflowSettings(tracking_uri=" ")
