"""Tests for configuration."""

import pytest
from pydantic import ValidationError

from shopbook.config import StorageSettings, validate_all_settings


class TestStorageSettings:

    @pytest.mark.parametrize("prefix", ["my shop", "shop/books", "-shop", ""])
    def test_key_prefix_must_be_a_valid_key(self, prefix):
        with pytest.raises(ValidationError):
            StorageSettings(key_prefix=prefix)

    def test_trailing_dash_dropped(self):
        assert StorageSettings(key_prefix="shop-").key_prefix == "shop"

    def test_bad_prefix_reported_at_startup(self, monkeypatch):
        monkeypatch.setenv("SHOPBOOK_STORAGE_KEY_PREFIX", "my shop")

        status = validate_all_settings()

        assert status["storage"] is False
        assert "key_prefix" in status["storage_error"]
        assert status["app"] is True
