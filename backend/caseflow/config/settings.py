"""Application Settings - Central Configuration"""
from functools import lru_cache
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # MongoDB
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "caseflow_dev"

    # OpenAI / Azure OpenAI (AI advisor is disabled when no key is configured)
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    azure_openai_endpoint: str = ""
    azure_openai_api_key: str = ""
    azure_openai_deployment: str = "gpt-4"
    azure_openai_api_version: str = "2024-02-01"
    ai_request_timeout_seconds: float = 30.0
    ai_temperature: float = 0.3

    # Workflow engine defaults
    default_trigger: str = "permit_submitted"
    review_min_confidence: float = 0.8
    classification_min_confidence: float = 0.9
    inspection_days_default: int = 7
    default_assignee_role: str = "staff"
    inspector_role: str = "inspector"

    # Logging
    logs_path: str = "./logs"
    log_level: str = "INFO"

    # CORS - set to "*" to allow all origins
    cors_origins: str = "*"

    # Environment
    environment: str = "development"
    debug: bool = True

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string to list"""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def uses_azure_openai(self) -> bool:
        """Azure OpenAI takes precedence when both endpoint and key are set"""
        return bool(self.azure_openai_endpoint and self.azure_openai_api_key)

    @property
    def ai_model(self) -> str:
        """Model (or Azure deployment) name used for completions"""
        return self.azure_openai_deployment if self.uses_azure_openai else self.openai_model

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.environment.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
