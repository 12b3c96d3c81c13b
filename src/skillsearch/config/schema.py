"""Configuration schema using Pydantic.

Why this exists:
- Type-safe configuration with validation
- Environment variable support
- Providers and stores receive their settings explicitly at construction

How to extend:
1. Add new fields to existing config classes
2. Create new config classes for new components
3. Update skillsearch.toml with new settings
"""

from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EmbeddingProviderType(str, Enum):
    """Supported embedding providers."""

    ZHIPU = "zhipu"
    HASH = "hash"


class LLMProviderType(str, Enum):
    """Supported LLM providers."""

    ZHIPU = "zhipu"


class StoreType(str, Enum):
    """Supported skill stores."""

    MEMORY = "memory"
    SQLITE = "sqlite"


class EmbeddingConfig(BaseModel):
    """Embedding provider configuration."""

    provider: EmbeddingProviderType = EmbeddingProviderType.ZHIPU
    model_name: str = "embedding-3"
    api_key: Optional[str] = None
    base_url: str = "https://open.bigmodel.cn/api/paas/v4"
    dimension: int = Field(default=1024, gt=0)
    timeout: float = Field(default=30.0, gt=0)
    batch_size: int = Field(default=16, gt=0)
    extra_params: dict[str, Any] = Field(default_factory=dict)


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: LLMProviderType = LLMProviderType.ZHIPU
    model_name: str = "glm-4-flash"
    api_key: Optional[str] = None
    base_url: str = "https://open.bigmodel.cn/api/paas/v4"
    max_tokens: int = Field(default=2000, gt=0)
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    timeout: float = Field(default=30.0, gt=0)
    extra_params: dict[str, Any] = Field(default_factory=dict)


class SearchConfig(BaseModel):
    """Scoring and retrieval settings.

    The fusion weights and the semantic threshold define result ordering,
    so changing them changes every hybrid ranking.
    """

    default_limit: int = Field(default=12, gt=0)
    keyword_weight: float = Field(default=0.6, ge=0.0)
    semantic_weight: float = Field(default=0.4, ge=0.0)
    semantic_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    semantic_candidate_limit: int = Field(default=100, gt=0)
    keyword_require_match: bool = True
    use_stored_embeddings: bool = False
    freshness_days: int = Field(default=7, gt=0)


class StoreConfig(BaseModel):
    """Skill store configuration."""

    store_type: StoreType = StoreType.SQLITE
    connection_string: str = "sqlite:///~/.skillsearch/skills.db"
    extra_params: dict[str, Any] = Field(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        """Expand ~ in connection string."""
        if self.connection_string and "~" in self.connection_string:
            self.connection_string = self.connection_string.replace(
                "~", str(Path.home())
            )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = LogLevel.INFO
    json_logs: bool = False
    log_dir: Optional[Path] = None
    enable_file: bool = False
    max_days: int = Field(default=30, gt=0)

    @model_validator(mode="after")
    def expand_log_dir(self) -> "LoggingConfig":
        if self.log_dir is not None:
            self.log_dir = self.log_dir.expanduser()
        return self


class AppConfig(BaseSettings):
    """Main application configuration.

    Loads from:
    1. Config file (TOML)
    2. Environment variables (prefixed with SKILLSEARCH_)
    3. .env file
    """

    model_config = SettingsConfigDict(
        env_prefix="SKILLSEARCH_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    app_name: str = "skillsearch"

    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        """Environment variables take precedence over values from the config file."""
        return env_settings, dotenv_settings, init_settings, file_secret_settings
