"""Unit tests for the config module."""

import os
from pathlib import Path
from unittest.mock import patch

from pydantic import ValidationError
import pytest

from sutta_search.config import Settings, load_settings


pytestmark = pytest.mark.unit


class TestConfig:
    """Test configuration loading and validation."""

    def test_config_defaults_are_applied(self):
        settings = Settings()
        assert settings.corpus_dir == Path("data")
        assert settings.db_suffix == ".db"
        assert settings.max_doc == 50
        assert settings.default_language == "pli"
        assert settings.default_pali_author == "ms"
        assert settings.suid_map_path is None
        assert settings.manifest_path is None

    @patch.dict(os.environ, {"SUTTA_SEARCH_MAX_DOC": "7", "SUTTA_SEARCH_CORPUS_DIR": "/srv/corpus"}, clear=False)
    def test_environment_overrides(self):
        settings = load_settings()
        assert settings.max_doc == 7
        assert settings.corpus_dir == Path("/srv/corpus")

    @patch.dict(os.environ, {"SUTTA_SEARCH_MAX_DOC": "-1"}, clear=False)
    def test_negative_limit_rejected(self):
        with pytest.raises(ValidationError):
            Settings()

    def test_suffix_gets_leading_dot(self):
        assert Settings(db_suffix="sqlite").db_suffix == ".sqlite"
        assert Settings(db_suffix=".db").db_suffix == ".db"

    def test_language_defaults_are_lowercased(self):
        settings = Settings(default_language=" EN ", default_pali_author="MS")
        assert settings.default_language == "en"
        assert settings.default_pali_author == "ms"

    def test_artifact_path(self, tmp_path):
        settings = Settings(corpus_dir=tmp_path)
        assert settings.artifact_name("en", "sujato") == "en-sujato.db"
        assert settings.artifact_path("en", "sujato") == tmp_path / "en-sujato.db"

    def test_cancel_check_rows_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(regex_cancel_check_rows=0)
