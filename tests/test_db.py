"""
Tests for Supabase configuration and repositories.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from carepath.db import EmotionScanRepository, SubmissionRepository, SupabaseConfig, reset_clients
from carepath.db import is_configured
from carepath.engines import estimate_emotions
from carepath.models import GenerationResult


@pytest.fixture(autouse=True)
def _reset():
    reset_clients()
    yield
    reset_clients()


def _mock_client(row=None):
    client = MagicMock()
    client.table.return_value.insert.return_value.execute.return_value.data = [row or {"id": "abc"}]
    return client


class TestConfig:
    """Test environment-driven configuration."""

    def test_not_configured(self, monkeypatch):
        for var in ("SUPABASE_URL", "SUPABASE_ANON_KEY", "SUPABASE_SERVICE_KEY"):
            monkeypatch.delenv(var, raising=False)
        assert not is_configured()
        with pytest.raises(ValueError):
            SupabaseConfig().validate()

    def test_url_without_key(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
        monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
        monkeypatch.delenv("SUPABASE_SERVICE_KEY", raising=False)
        assert not SupabaseConfig().is_configured

    def test_service_key_preferred(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
        monkeypatch.setenv("SUPABASE_SERVICE_KEY", "service")
        config = SupabaseConfig()
        assert config.is_configured
        assert config.write_key == "service"


class TestRepositories:
    """Test repository writes against a mocked client."""

    def test_save_submission(self):
        client = _mock_client()
        result = GenerationResult(focus_areas=["Speech"], therapy_goals=["Goal"], activities=[], notes="n")
        row = SubmissionRepository(client).save(result, {"age": "3"})

        assert row == {"id": "abc"}
        client.table.assert_called_with("analysis_results")
        data = client.table.return_value.insert.call_args[0][0]
        assert data["focus_areas"] == ["Speech"]
        assert data["_input"] == {"age": "3"}
        assert "created_at" in data

    def test_save_returns_none_without_rows(self):
        client = _mock_client()
        client.table.return_value.insert.return_value.execute.return_value.data = []
        result = GenerationResult(focus_areas=["Speech"], therapy_goals=[], activities=[], notes="n")
        assert SubmissionRepository(client).save(result) is None

    def test_save_emotion_scan(self):
        client = _mock_client()
        EmotionScanRepository(client).save(estimate_emotions(4))

        client.table.assert_called_with("emotion_analyses")
        data = client.table.return_value.insert.call_args[0][0]
        assert data["method"] == "local_analysis_without_image"
        assert sum(data["emotion_data"]["all_emotions"].values()) == 100

    def test_insert_errors_propagate(self):
        client = _mock_client()
        client.table.return_value.insert.return_value.execute.side_effect = RuntimeError("down")
        result = GenerationResult(focus_areas=["Speech"], therapy_goals=[], activities=[], notes="n")
        with pytest.raises(RuntimeError):
            SubmissionRepository(client).save(result)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
