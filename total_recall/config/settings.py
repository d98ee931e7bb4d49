"""Application settings loaded from environment variables via pydantic-settings.

Sources, highest priority first:

  1. Environment variables, e.g. ``AZURE_OPENAI_KEY=...``
  2. ``.env`` in the working directory
  3. ``config/config.yaml`` (applied by :func:`total_recall.config.loader.load_settings`)
  4. The defaults below

Field ``vector_size`` maps to env var ``VECTOR_SIZE``; pydantic-settings
upper-cases and matches automatically.  List fields accept JSON from the
environment, e.g. ``EXCLUDED_PATHS='["node_modules", ".git"]'``.

Required values depend on ``ai_provider``: the Azure deployment needs both
endpoint/key pairs, plain OpenAI only needs ``OPENAI_API_KEY``.  Nothing is
validated on construction so tests and ``--help`` work without credentials;
the entry points call :meth:`Settings.validate_required` at startup.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from total_recall.utils.errors import ConfigurationError

_DEFAULT_EXTENSIONS = [
    ".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs",
    ".py", ".cs", ".java", ".kt", ".go", ".rs", ".rb", ".php",
    ".c", ".h", ".cpp", ".hpp", ".swift", ".scala", ".sql", ".sh",
]

_DEFAULT_EXCLUDES = [
    "node_modules", "dist", ".turbo", ".next", "assets", ".git", ".angular",
    "__pycache__", ".venv", "bin", "obj",
]

_REQUIRED_BY_PROVIDER: dict[str, tuple[str, ...]] = {
    "azure": (
        "azure_openai_endpoint",
        "azure_openai_key",
        "azure_embedding_endpoint",
        "azure_embedding_key",
    ),
    "openai": ("openai_api_key",),
}


class Settings(BaseSettings):
    """Total Recall settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # === AI provider ===
    ai_provider: Literal["azure", "openai"] = "azure"

    azure_openai_endpoint: str = ""
    azure_openai_key: str = ""
    azure_embedding_endpoint: str = ""
    azure_embedding_key: str = ""
    azure_api_version: str = "2024-10-21"

    openai_api_key: str = ""
    openai_base_url: str = ""  # Custom base URL for OpenAI-compatible APIs

    # Deployment names on Azure, model names on OpenAI.
    embedding_deployment: str = "text-embedding-3-large"
    completion_deployment: str = "gpt-4o"

    # === Vector store ===
    search_index_name: str = "my-code"
    vector_size: int = Field(default=3072, gt=0)
    chromadb_persist_dir: str = "./data/chromadb"

    # === Ingestion ===
    chunk_max_tokens: int = Field(default=8000, gt=0)
    ingest_batch_size: int = Field(default=500, gt=0)
    max_concurrent_tasks: int = Field(default=8, gt=0)
    file_timeout_seconds: float = Field(default=120.0, ge=0)  # 0 disables
    embed_request_token_limit: int = Field(default=250_000, gt=0)
    source_extensions: list[str] = Field(default_factory=lambda: list(_DEFAULT_EXTENSIONS))
    excluded_paths: list[str] = Field(default_factory=lambda: list(_DEFAULT_EXCLUDES))

    # === Retrieval / completion ===
    retrieval_top_k: int = Field(default=3, gt=0)
    context_char_limit: int = Field(default=2000, gt=0)

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 5291
    app_env: str = "development"
    log_level: str = "INFO"

    def missing_required(self) -> list[str]:
        """Return the env-var names of every required value that is empty."""
        return [
            name.upper()
            for name in _REQUIRED_BY_PROVIDER[self.ai_provider]
            if not str(getattr(self, name)).strip()
        ]

    def validate_required(self) -> None:
        """Raise :class:`ConfigurationError` naming *all* missing values at once."""
        missing = self.missing_required()
        if missing:
            raise ConfigurationError(
                message="Missing required environment variables: " + ", ".join(missing),
                missing=missing,
            )

    def describe(self) -> dict[str, str]:
        """Return the configuration as display strings with secrets masked.

        Any field whose name ends in ``key`` is replaced by asterisks of the
        same length (ten when unset) so it can be printed safely.
        """
        described: dict[str, str] = {}
        for name, value in self.model_dump().items():
            if name.endswith("key"):
                described[name.upper()] = "*" * (len(value) if value else 10)
            elif isinstance(value, list):
                described[name.upper()] = ", ".join(str(v) for v in value)
            else:
                described[name.upper()] = str(value)
        return described

    def get_available_providers(self) -> dict[str, str]:
        """Return the configured embedding/completion provider labels."""
        label = "azure-openai" if self.ai_provider == "azure" else "openai"
        return {
            "embedding": f"{label}:{self.embedding_deployment}",
            "completion": f"{label}:{self.completion_deployment}",
            "vector_store": "chromadb",
        }
