import pytest

from config.settings import SignalingSettings, validate_environment


def test_defaults(monkeypatch):
    for name in ("PORT", "REJOIN_POLICY", "EMIT_ERROR_EVENTS", "ALLOWED_ORIGINS", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    current = SignalingSettings()
    assert current.port == 5000
    assert current.rejoin_policy == "reject"
    assert current.emit_error_events is False
    assert current.allowed_origins == ["*"]
    validate_environment(current)


def test_values_from_environment(monkeypatch):
    monkeypatch.setenv("REJOIN_POLICY", "Switch")
    monkeypatch.setenv("EMIT_ERROR_EVENTS", "yes")
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://meet.example.com, http://localhost:3000,")
    current = SignalingSettings()
    assert current.rejoin_policy == "switch"
    assert current.emit_error_events is True
    assert current.allowed_origins == ["https://meet.example.com", "http://localhost:3000"]


def test_invalid_values_are_reported(monkeypatch):
    monkeypatch.setenv("REJOIN_POLICY", "maybe")
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    with pytest.raises(RuntimeError) as excinfo:
        validate_environment(SignalingSettings())
    assert "REJOIN_POLICY" in str(excinfo.value)
    assert "LOG_LEVEL" in str(excinfo.value)


def test_non_numeric_port_is_reported_by_validation(monkeypatch):
    monkeypatch.setenv("PORT", "abc")
    current = SignalingSettings()
    with pytest.raises(RuntimeError) as excinfo:
        validate_environment(current)
    assert "PORT must be an integer" in str(excinfo.value)
