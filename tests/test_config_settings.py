"""Tests for config.settings module."""

from pathlib import Path
from typing import Generator

import pytest

from subtranslator.config.settings import (
    DETECTION_ENCODINGS,
    SUPPORTED_TRANSLATION_SERVICES,
    api_key_env_var,
    get_all_config,
    get_config,
    reset_config,
    resolve_api_key,
    set_config,
)


@pytest.fixture(autouse=True)
def clean_config() -> Generator[None, None, None]:
    """Start and end every test with empty runtime configuration."""
    reset_config()
    yield
    reset_config()


class TestRuntimeConfig:
    """Test the runtime configuration store."""

    def test_set_and_get(self) -> None:
        """Test storing a value."""
        set_config("max_workers", 8)
        assert get_config("max_workers") == 8
        assert get_all_config() == {"max_workers": 8}

    def test_default(self) -> None:
        """Test the fallback value."""
        assert get_config("missing") is None
        assert get_config("missing", "x") == "x"

    def test_get_all_is_copy(self) -> None:
        """Test that the returned mapping is detached."""
        set_config("a", 1)
        snapshot = get_all_config()
        snapshot["b"] = 2
        assert get_config("b") is None


class TestConstants:
    """Test configuration constants."""

    def test_detection_order(self) -> None:
        """iso-8859-1 decodes anything, so it is tried last."""
        assert DETECTION_ENCODINGS[0] == "utf-8"
        assert DETECTION_ENCODINGS[-1] == "iso-8859-1"

    def test_services(self) -> None:
        """Test the service list."""
        assert "google" in SUPPORTED_TRANSLATION_SERVICES
        assert "identity" in SUPPORTED_TRANSLATION_SERVICES


class TestResolveApiKey:
    """Test credential resolution."""

    def test_env_var_name(self) -> None:
        """Test the variable naming scheme."""
        assert api_key_env_var("google") == "SUBTRANSLATOR_GOOGLE_KEY"

    def test_explicit_key_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that a given key beats the environment."""
        monkeypatch.setenv("SUBTRANSLATOR_GOOGLE_KEY", "value#from-env")
        assert resolve_api_key("google", "given") == "given"

    def test_value_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a literal key in the environment."""
        monkeypatch.setenv("SUBTRANSLATOR_MICROSOFT_KEY", "value#abc|westeurope")
        assert resolve_api_key("microsoft") == "abc|westeurope"

    def test_file_prefix(self, monkeypatch: pytest.MonkeyPatch, temp_dir: Path) -> None:
        """Test a key read from a file."""
        key_file = temp_dir / "key.txt"
        key_file.write_text("secret-key\n", encoding="utf-8")
        monkeypatch.setenv("SUBTRANSLATOR_IBM_KEY", f"file#{key_file}")

        assert resolve_api_key("ibm") == "secret-key"

    def test_missing_file(self, monkeypatch: pytest.MonkeyPatch, temp_dir: Path) -> None:
        """Test an unreadable key file."""
        monkeypatch.setenv("SUBTRANSLATOR_IBM_KEY", f"file#{temp_dir / 'nope.txt'}")

        with pytest.raises(ValueError, match="Cannot read API key file"):
            resolve_api_key("ibm")

    def test_bare_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a key without prefix."""
        monkeypatch.setenv("SUBTRANSLATOR_AMAZON_KEY", "AKID:SECRET")
        assert resolve_api_key("amazon") == "AKID:SECRET"

    def test_unknown_prefix_kept(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that a '#' inside a bare key is not a prefix."""
        monkeypatch.setenv("SUBTRANSLATOR_GOOGLE_KEY", "ab#cd")
        assert resolve_api_key("google") == "ab#cd"

    def test_not_configured(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that nothing configured gives None."""
        monkeypatch.delenv("SUBTRANSLATOR_GOOGLE_KEY", raising=False)
        monkeypatch.delenv("qsubtranslator_google_key", raising=False)
        assert resolve_api_key("google") is None

    def test_legacy_variable(self, monkeypatch: pytest.MonkeyPatch, temp_dir: Path) -> None:
        """Test the qsubtranslator_<service>_key names of earlier releases."""
        key_file = temp_dir / "ibm.txt"
        key_file.write_text("legacy-file-key\n", encoding="utf-8")
        monkeypatch.delenv("SUBTRANSLATOR_GOOGLE_KEY", raising=False)
        monkeypatch.delenv("SUBTRANSLATOR_IBM_KEY", raising=False)
        monkeypatch.setenv("qsubtranslator_google_key", "value#legacy-key")
        monkeypatch.setenv("qsubtranslator_ibm_key", f"file#{key_file}")

        assert resolve_api_key("google") == "legacy-key"
        assert resolve_api_key("ibm") == "legacy-file-key"

    def test_new_variable_beats_legacy(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that SUBTRANSLATOR_<SERVICE>_KEY is read first."""
        monkeypatch.setenv("SUBTRANSLATOR_AMAZON_KEY", "value#new")
        monkeypatch.setenv("qsubtranslator_amazon_key", "value#old")
        assert resolve_api_key("amazon") == "new"

    def test_legacy_missing_file_names_variable(
        self, monkeypatch: pytest.MonkeyPatch, temp_dir: Path
    ) -> None:
        """Test that the error points at the legacy variable that was read."""
        monkeypatch.delenv("SUBTRANSLATOR_IBM_KEY", raising=False)
        monkeypatch.setenv("qsubtranslator_ibm_key", f"file#{temp_dir / 'nope.txt'}")

        with pytest.raises(ValueError, match="qsubtranslator_ibm_key"):
            resolve_api_key("ibm")
