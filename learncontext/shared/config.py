"""
Configuration management for LearnContext.
Loads from config/learncontext.yaml and environment variables.
"""

from pathlib import Path
from typing import Optional, Dict, Any
import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class LLMConfig(BaseSettings):
    """Chat-completion provider configuration."""
    provider: str = Field(default="openai")  # openai, anthropic
    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    anthropic_api_key: Optional[str] = Field(default=None, alias="ANTHROPIC_API_KEY")
    default_model: str = Field(default="gpt-4o-mini")
    tutor_temperature: float = Field(default=0.7)
    grading_temperature: float = Field(default=0.5)
    max_tokens: int = Field(default=1000)

    model_config = SettingsConfigDict(env_prefix="LLM_", extra="ignore", populate_by_name=True)

    def api_key(self) -> Optional[str]:
        """Credential for the configured provider, if any."""
        if self.provider == "anthropic":
            return self.anthropic_api_key
        return self.openai_api_key

    def has_credentials(self) -> bool:
        return bool(self.api_key())


class StorageConfig(BaseSettings):
    """Key-value persistence configuration."""
    db_path: Path = Field(default=Path("data/learncontext.sqlite"), alias="STORAGE_DB_PATH")
    memory_key: str = Field(default="learncontext_memory")
    session_key_prefix: str = Field(default="learncontext_session")

    model_config = SettingsConfigDict(env_prefix="STORAGE_", extra="ignore", populate_by_name=True)


class PromptConfig(BaseSettings):
    """Prompt assembly configuration."""
    history_limit: int = Field(default=10)
    summarization_threshold: int = Field(default=500)
    compress_large_profiles: bool = Field(default=False)

    model_config = SettingsConfigDict(env_prefix="PROMPT_", extra="ignore")


class LearnContextSettings(BaseSettings):
    """Main LearnContext configuration."""
    env: str = Field(default="dev", alias="LEARNCONTEXT_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: Optional[Path] = Field(default=None, alias="LOG_FILE")

    # None means "derive from credentials"
    demo_mode: Optional[bool] = Field(default=None, alias="DEMO_MODE")

    # Sub-configurations
    llm: LLMConfig = Field(default_factory=LLMConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    prompt: PromptConfig = Field(default_factory=PromptConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
        populate_by_name=True,
    )

    def is_demo_mode(self) -> bool:
        """Demo mode is on when forced, or when no credential is configured."""
        if self.demo_mode is not None:
            return self.demo_mode
        return not self.llm.has_credentials()

    @classmethod
    def load_from_yaml(cls, config_path: Optional[Path] = None) -> "LearnContextSettings":
        """Load settings from YAML file and merge with environment variables."""
        if config_path is None:
            config_path = Path("config/learncontext.yaml")

        config_dict: Dict[str, Any] = {}

        if config_path.exists():
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_data = yaml.safe_load(f) or {}
                config_dict = yaml_data.get("learncontext", {}) or {}

        # Instantiate sub-configs directly so their env vars still apply
        sub_configs = {"llm": LLMConfig, "storage": StorageConfig, "prompt": PromptConfig}
        for key, config_cls in sub_configs.items():
            if isinstance(config_dict.get(key), dict):
                config_dict[key] = config_cls(**config_dict[key])

        return cls(**config_dict)


# Global settings instance
_settings: Optional[LearnContextSettings] = None


def get_settings() -> LearnContextSettings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = LearnContextSettings.load_from_yaml()
    return _settings


# Alias for convenience
settings = get_settings()
