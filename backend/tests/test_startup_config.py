from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from types import SimpleNamespace

import pytest

from config.validators import _require_positive_timeout, validate_startup_config


def _settings(**overrides):
    base = {
        "ENV": "dev",
        "MOCK_LLM": False,
        "GEMINI_API_KEY": "test-key",
        "LLM_TIMEOUT_S": 5.0,
        "LOG_REDACTION_ENABLED": True,
    }
    base.update(overrides)
    return SimpleNamespace(**base)


@pytest.mark.parametrize("timeout", [None, 0, -1.5])
def test_require_positive_timeout_fails(timeout):
    with pytest.raises(RuntimeError, match="LLM_TIMEOUT_S"):
        _require_positive_timeout(_settings(LLM_TIMEOUT_S=timeout))


def test_validate_startup_config_rejects_mock_in_prod():
    with pytest.raises(RuntimeError, match="MOCK_LLM"):
        validate_startup_config(_settings(ENV="prod", MOCK_LLM=True))


@pytest.mark.parametrize("api_key", ["", "   "])
def test_validate_startup_config_raises_on_missing_api_key(api_key):
    with pytest.raises(RuntimeError, match="GEMINI_API_KEY"):
        validate_startup_config(_settings(GEMINI_API_KEY=api_key))


def test_validate_startup_config_mock_needs_no_key():
    validate_startup_config(_settings(MOCK_LLM=True, GEMINI_API_KEY=""))


def test_validate_startup_config_logs_warning_when_redaction_off(caplog):
    caplog.set_level("WARNING")

    validate_startup_config(_settings(LOG_REDACTION_ENABLED=False))

    assert "LOG_REDACTION_ENABLED" in caplog.text


def test_validate_startup_config_passes_with_valid_required_config(caplog):
    caplog.set_level("WARNING")
    validate_startup_config(_settings())
    assert caplog.text == ""
