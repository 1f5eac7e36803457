"""
Centralized configuration management for the application.
Loads settings from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Optional
from functools import lru_cache
from pydantic_settings import BaseSettings
from pydantic import Field, validator


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ========================================================================
    # Database Configuration
    # ========================================================================
    database_url: str = Field(default="sqlite:///./applyo.db", alias="DATABASE_URL")
    db_pool_size: int = Field(default=10, alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=20, alias="DB_MAX_OVERFLOW")
    db_pool_recycle: int = Field(default=3600, alias="DB_POOL_RECYCLE")
    db_echo: bool = Field(default=False, alias="DB_ECHO")

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured database is SQLite."""
        return self.database_url.startswith("sqlite")

    # ========================================================================
    # OpenAI Configuration
    # ========================================================================
    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    orchestrator_model: str = Field(default="gpt-4o-2024-11-20", alias="ORCHESTRATOR_MODEL")
    finder_model: str = Field(default="gpt-4o", alias="FINDER_MODEL")
    extraction_model: str = Field(default="gpt-4o-mini", alias="EXTRACTION_MODEL")
    llm_temperature: float = Field(default=0.3, alias="LLM_TEMPERATURE")
    llm_timeout: int = Field(default=60, alias="LLM_TIMEOUT")
    agent_max_steps: int = Field(default=15, alias="AGENT_MAX_STEPS")
    finder_max_steps: int = Field(default=10, alias="FINDER_MAX_STEPS")

    # ========================================================================
    # Exa Web Search Configuration
    # ========================================================================
    exa_api_key: Optional[str] = Field(default=None, alias="EXA_API_KEY")
    exa_base_url: str = Field(default="https://api.exa.ai", alias="EXA_BASE_URL")
    search_num_results: int = Field(default=3, alias="SEARCH_NUM_RESULTS")
    search_max_characters: int = Field(default=1000, alias="SEARCH_MAX_CHARACTERS")

    # ========================================================================
    # Email Verification Configuration
    # ========================================================================
    zerobounce_api_key: Optional[str] = Field(default=None, alias="ZEROBOUNCE_API_KEY")
    zerobounce_base_url: str = Field(default="https://api.zerobounce.net/v2", alias="ZEROBOUNCE_BASE_URL")
    verification_timeout: int = Field(default=10, alias="VERIFICATION_TIMEOUT")

    # ========================================================================
    # Qdrant Configuration
    # ========================================================================
    qdrant_host: str = Field(default="localhost", alias="QDRANT_HOST")
    qdrant_port: int = Field(default=6333, alias="QDRANT_PORT")
    qdrant_api_key: Optional[str] = Field(default=None, alias="QDRANT_API_KEY")
    company_collection: str = Field(default="company_vectors", alias="COMPANY_COLLECTION")
    employee_collection: str = Field(default="employee_vectors", alias="EMPLOYEE_COLLECTION")

    @property
    def qdrant_url(self) -> str:
        """Qdrant URL."""
        return f"http://{self.qdrant_host}:{self.qdrant_port}"

    # ========================================================================
    # Embedding Configuration
    # ========================================================================
    ollama_host: str = Field(default="http://localhost:11434", alias="OLLAMA_HOST")
    embedding_model: str = Field(default="nomic-embed-text", alias="EMBEDDING_MODEL")
    embedding_dimension: int = Field(default=768, alias="EMBEDDING_DIMENSION")
    vector_batch_size: int = Field(default=50, alias="VECTOR_BATCH_SIZE")

    # ========================================================================
    # SMTP Configuration
    # ========================================================================
    smtp_host: Optional[str] = Field(default=None, alias="SMTP_HOST")
    smtp_port: int = Field(default=465, alias="SMTP_PORT")
    smtp_username: Optional[str] = Field(default=None, alias="SMTP_USERNAME")
    smtp_password: Optional[str] = Field(default=None, alias="SMTP_PASSWORD")
    smtp_sender: Optional[str] = Field(default=None, alias="SMTP_SENDER")
    smtp_use_tls: bool = Field(default=False, alias="SMTP_USE_TLS")

    # ========================================================================
    # Auth Configuration
    # ========================================================================
    session_cookie_name: str = Field(default="better-auth.session_token", alias="SESSION_COOKIE_NAME")
    session_ttl_days: int = Field(default=7, alias="SESSION_TTL_DAYS")
    cors_origins: str = Field(default="http://localhost:3000", alias="CORS_ORIGINS")

    @property
    def cors_origins_list(self) -> list[str]:
        """CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ========================================================================
    # Application Configuration
    # ========================================================================
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    http_timeout: int = Field(default=30, alias="HTTP_TIMEOUT")
    max_workers: int = Field(default=4, alias="MAX_WORKERS")

    class Config:
        """Pydantic settings config."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @validator("llm_temperature")
    def validate_temperature(cls, v):
        """Ensure temperature is within the range OpenAI accepts."""
        if not 0 <= v <= 2:
            raise ValueError("llm_temperature must be between 0 and 2")
        return v

    @validator("log_level")
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @validator("environment")
    def validate_environment(cls, v):
        """Ensure environment is valid."""
        valid_envs = {"development", "production", "testing"}
        if v.lower() not in valid_envs:
            raise ValueError(f"environment must be one of {valid_envs}")
        return v.lower()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Returns:
        Settings: Application configuration object
    """
    return Settings()


# Convenience access
settings = get_settings()


# ============================================================================
# Path Configuration
# ============================================================================

PROJECT_ROOT = Path(__file__).parent.parent
LOGS_DIR = PROJECT_ROOT / "logs"
