"""Application configuration management."""
import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Completion service credentials
    deepseek_api_key: str = ""  # Required for llm_provider="deepseek"
    anthropic_api_key: str = ""  # Required for llm_provider="claude"
    ollama_host: str = "http://localhost:11434"  # Local Ollama by default

    # LLM Provider Selection ("deepseek", "claude" or "ollama")
    llm_provider: str = "deepseek"
    deepseek_model: str = "deepseek-chat"
    claude_model: str = "claude-sonnet-4-20250514"
    ollama_model: str = "qwen2.5:7b"
    llm_base_url: str = "https://api.deepseek.com/v1"
    llm_temperature: float = 0.3
    llm_max_tokens: int = 2000

    # Extraction Configuration
    extraction_max_text_length: int = 8000
    slot_extractor: str = "ai"  # "ai" or "heuristic"
    heuristic_fallback: bool = False
    default_sport_name: str = "バドミントン"
    parser_version: str = "v1.0"

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # Storage Configuration
    storage_base_path: str = "/tmp/data" if os.getenv("SPACE_ID") else "./data"

    # Network Configuration
    default_timeout: int = 30

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def storage_path(self) -> Path:
        """Get the resolved storage path."""
        return Path(self.storage_base_path).expanduser().resolve()


# Global settings instance
settings = Settings()
