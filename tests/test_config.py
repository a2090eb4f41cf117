from __future__ import annotations

import pytest

from revseeker import config

VAR = "REVSEEKER_TEST_TIMEOUT"


def test_unset_variable_uses_default_quietly(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.delenv(VAR, raising=False)

    assert config._env_float(VAR, 30.0) == 30.0
    assert capsys.readouterr().err == ""


@pytest.mark.parametrize("raw, expected", [("12.5", 12.5), (" 5 ", 5.0), ("1e1", 10.0)])
def test_positive_number_is_used(monkeypatch: pytest.MonkeyPatch, capsys, raw: str, expected: float) -> None:
    monkeypatch.setenv(VAR, raw)

    assert config._env_float(VAR, 30.0) == expected
    assert capsys.readouterr().err == ""


@pytest.mark.parametrize("raw", ["abc", "30s", "0", "-5", "nan", "inf"])
def test_malformed_value_warns_and_keeps_default(monkeypatch: pytest.MonkeyPatch, capsys, raw: str) -> None:
    monkeypatch.setenv(VAR, raw)

    assert config._env_float(VAR, 30.0) == 30.0
    err = capsys.readouterr().err
    assert err.startswith(f"[!] config: {VAR}=")
    assert "using 30" in err


def test_module_level_timeouts_are_positive() -> None:
    assert config.HTTP_TIMEOUT > 0
    assert config.AZ_CLI_TIMEOUT > 0
