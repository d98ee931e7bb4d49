"""Unit tests for Settings and the YAML/env configuration loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from total_recall.config.loader import load_settings
from total_recall.config.settings import Settings
from total_recall.utils.errors import ConfigurationError

_ENV_VARS = (
    "AI_PROVIDER",
    "AZURE_OPENAI_ENDPOINT",
    "AZURE_OPENAI_KEY",
    "AZURE_EMBEDDING_ENDPOINT",
    "AZURE_EMBEDDING_KEY",
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "VECTOR_SIZE",
    "CHUNK_MAX_TOKENS",
    "SEARCH_INDEX_NAME",
    "EXCLUDED_PATHS",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Isolate every test from the caller's environment and any .env file."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def _azure_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AZURE_OPENAI_ENDPOINT", "https://chat.example.openai.azure.com")
    monkeypatch.setenv("AZURE_OPENAI_KEY", "chat-key")
    monkeypatch.setenv("AZURE_EMBEDDING_ENDPOINT", "https://embed.example.openai.azure.com")
    monkeypatch.setenv("AZURE_EMBEDDING_KEY", "embed-key")


# ======================================================================
# Settings
# ======================================================================


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings()

        assert settings.ai_provider == "azure"
        assert settings.search_index_name == "my-code"
        assert settings.vector_size == 3072
        assert settings.chunk_max_tokens == 8000
        assert settings.ingest_batch_size == 500
        assert settings.max_concurrent_tasks == 8
        assert settings.embed_request_token_limit == 250_000
        assert settings.retrieval_top_k == 3
        assert settings.app_port == 5291
        assert "node_modules" in settings.excluded_paths
        assert ".ts" in settings.source_extensions

    def test_env_overrides_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VECTOR_SIZE", "1536")
        monkeypatch.setenv("EXCLUDED_PATHS", '["vendor", ".git"]')

        settings = Settings()

        assert settings.vector_size == 1536
        assert settings.excluded_paths == ["vendor", ".git"]

    def test_dotenv_file_is_read(self, tmp_path: Path) -> None:
        (tmp_path / ".env").write_text("SEARCH_INDEX_NAME=from-dotenv\n", encoding="utf-8")
        assert Settings().search_index_name == "from-dotenv"

    def test_missing_required_lists_all_azure_values(self) -> None:
        assert Settings().missing_required() == [
            "AZURE_OPENAI_ENDPOINT",
            "AZURE_OPENAI_KEY",
            "AZURE_EMBEDDING_ENDPOINT",
            "AZURE_EMBEDDING_KEY",
        ]

    def test_whitespace_counts_as_missing(self) -> None:
        settings = Settings(
            azure_openai_endpoint="https://x",
            azure_openai_key="   ",
            azure_embedding_endpoint="https://y",
            azure_embedding_key="k",
        )
        assert settings.missing_required() == ["AZURE_OPENAI_KEY"]

    def test_validate_required_reports_every_missing_value(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(azure_openai_endpoint="https://x").validate_required()

        assert exc_info.value.missing == [
            "AZURE_OPENAI_KEY",
            "AZURE_EMBEDDING_ENDPOINT",
            "AZURE_EMBEDDING_KEY",
        ]
        assert "AZURE_EMBEDDING_KEY" in str(exc_info.value)

    def test_openai_provider_only_needs_api_key(self) -> None:
        settings = Settings(ai_provider="openai")
        assert settings.missing_required() == ["OPENAI_API_KEY"]

        Settings(ai_provider="openai", openai_api_key="sk-test").validate_required()

    def test_describe_masks_secrets(self) -> None:
        described = Settings(azure_openai_key="abcdef").describe()

        assert described["AZURE_OPENAI_KEY"] == "******"
        assert described["AZURE_EMBEDDING_KEY"] == "*" * 10
        assert described["OPENAI_API_KEY"] == "*" * 10
        assert described["SEARCH_INDEX_NAME"] == "my-code"
        assert described["VECTOR_SIZE"] == "3072"
        assert "abcdef" not in described.values()

    def test_available_providers(self) -> None:
        providers = Settings(ai_provider="openai").get_available_providers()
        assert providers == {
            "embedding": "openai:text-embedding-3-large",
            "completion": "openai:gpt-4o",
            "vector_store": "chromadb",
        }


# ======================================================================
# load_settings
# ======================================================================


class TestLoadSettings:
    def test_missing_yaml_uses_defaults(self, tmp_path: Path) -> None:
        settings = load_settings(path=str(tmp_path / "nope.yaml"), validate=False)
        assert settings.vector_size == 3072

    def test_yaml_sections_are_flattened(self, tmp_path: Path) -> None:
        config = tmp_path / "config.yaml"
        config.write_text(
            "index:\n  search_index_name: yaml-index\n  vector_size: 256\n"
            "indexing:\n  chunk_max_tokens: 100\n  typo_key: 1\n",
            encoding="utf-8",
        )

        settings = load_settings(path=str(config), validate=False)

        assert settings.search_index_name == "yaml-index"
        assert settings.vector_size == 256
        assert settings.chunk_max_tokens == 100

    def test_environment_beats_yaml(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config = tmp_path / "config.yaml"
        config.write_text("index:\n  vector_size: 256\n", encoding="utf-8")
        monkeypatch.setenv("VECTOR_SIZE", "1536")

        settings = load_settings(path=str(config), validate=False)

        assert settings.vector_size == 1536

    def test_validation_raises_configuration_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(path=str(tmp_path / "nope.yaml"), validate=True)

        assert len(exc_info.value.missing) == 4

    def test_validation_passes_with_credentials(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _azure_env(monkeypatch)

        settings = load_settings(path=str(tmp_path / "nope.yaml"), validate=True)

        assert settings.azure_embedding_key == "embed-key"

    def test_invalid_value_is_a_configuration_error(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("VECTOR_SIZE", "not-a-number")

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(path=str(tmp_path / "nope.yaml"), validate=False)

        assert exc_info.value.missing == ["VECTOR_SIZE"]
        assert "Invalid configuration values" in str(exc_info.value)

    def test_non_positive_vector_size_is_rejected(self, tmp_path: Path) -> None:
        config = tmp_path / "config.yaml"
        config.write_text("vector_size: 0\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_settings(path=str(config), validate=False)
