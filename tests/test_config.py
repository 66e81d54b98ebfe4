"""
Configuration Tests
"""

import pytest
from pydantic import ValidationError

from semsearch.config import Settings
from semsearch.core.errors import ConfigError
from semsearch.pipeline import build_pipeline


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SEARCH_SIMILARITY_THRESHOLD", raising=False)
        settings = Settings(_env_file=None)

        assert settings.embedding_dimension == 1024
        assert settings.embedding_max_retries == 3
        assert settings.max_chunk_length == 1000
        assert settings.chunk_overlap == 200
        assert settings.ingest_batch_size == 10
        assert settings.search_max_candidates == 1000
        assert settings.search_similarity_threshold is None

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("SEARCH_SIMILARITY_THRESHOLD", "0.72")
        monkeypatch.setenv("EMBEDDING_PROVIDER_CREDENTIALS", "hf_token")
        monkeypatch.setenv("MAX_PLUGIN_FILE_SIZE", "1048576")

        settings = Settings(_env_file=None)

        assert settings.require_similarity_threshold() == 0.72
        assert settings.embedding_provider_credentials.get_secret_value() == "hf_token"
        assert "hf_token" not in repr(settings)

    def test_missing_threshold_is_config_error(self):
        settings = Settings(_env_file=None, search_similarity_threshold=None)
        with pytest.raises(ConfigError):
            settings.require_similarity_threshold()

    def test_threshold_range_validated(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, search_similarity_threshold=1.5)


class TestBuildPipeline:
    def test_memory_backend(self):
        settings = Settings(
            _env_file=None,
            vector_backend="memory",
            search_similarity_threshold=0.6,
            ingest_batch_size=4,
        )
        pipeline = build_pipeline(settings)

        assert pipeline.engine is None
        assert pipeline.orchestrator.similarity_threshold == 0.6
        assert pipeline.content_store.batch_size == 4
        assert pipeline.chunker.options.max_chunk_length == 1000

    def test_missing_threshold_fails_fast(self):
        settings = Settings(_env_file=None, vector_backend="memory", search_similarity_threshold=None)
        with pytest.raises(ConfigError):
            build_pipeline(settings)

    def test_pgvector_dimension_must_match_columns(self):
        settings = Settings(
            _env_file=None,
            vector_backend="pgvector",
            search_similarity_threshold=0.6,
            embedding_dimension=384,
        )
        with pytest.raises(ConfigError):
            build_pipeline(settings)
