"""
Configuration management using Pydantic Settings
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str = "sqlite:///./quizportal.db"

    # Redis (empty string disables caching)
    REDIS_URL: str = "redis://redis:6379/0"

    # Application
    APP_NAME: str = "Lecture Quiz Portal"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_PER_HOUR: int = 1000
    RATE_LIMIT_LLM_PER_MINUTE: int = 10

    # Language model endpoint (OpenAI-compatible chat completions)
    LLM_API_URL: str = "https://api.groq.com/openai/v1/chat/completions"
    LLM_API_KEY: Optional[str] = None
    LLM_MODEL: str = "llama-3.3-70b-versatile"
    LLM_TIMEOUT_SECONDS: float = 60.0
    LLM_MAX_RETRIES: int = 3

    # Quiz Settings
    MAX_MATERIAL_CHARS: int = 12000
    MIN_EXTRACTED_CHARS: int = 50
    DEFAULT_FLASHCARD_COUNT: int = 10
    DEFAULT_MCQ_COUNT: int = 10
    DEFAULT_OPEN_QUESTION_COUNT: int = 5
    MIN_ITEM_COUNT: int = 1
    MAX_ITEM_COUNT: int = 30
    SHARE_CACHE_TTL: int = 3600  # 1 hour
    LEADERBOARD_CACHE_TTL: int = 60

    # Uploads
    UPLOAD_DIR: str = "./uploads"
    MAX_UPLOAD_MB: int = 20

    # Users
    ALLOWED_EMAIL_DOMAIN: str = "aut-edu.uz"
    VERIFY_TOKEN_TTL_HOURS: int = 24
    CLEANUP_INTERVAL_SECONDS: float = 60.0

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
