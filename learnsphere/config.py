"""
Configuration management using Pydantic Settings
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    
    # Database
    DATABASE_URL: str
    
    # Gemini API
    GEMINI_API_KEY: str
    GEMINI_MODEL: str = "gemini-1.5-flash"
    
    # Redis (generation leases)
    REDIS_URL: str = "redis://localhost:6379/0"
    GENERATION_LEASE_TTL: int = 300  # seconds
    
    # Application
    APP_NAME: str = "LearnSphere AI"
    APP_VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    ALLOWED_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:3000"]
    
    # Auth
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_MINUTES: int = 60 * 24 * 30
    
    # Uploads
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_MB: int = 10
    MAX_PDF_PAGES: int = 30
    
    # Credits
    DEFAULT_CREDITS: int = 5
    SUBSCRIPTION_CREDITS: int = 100
    
    # Prompt budget (characters, roughly 4 chars per token)
    PROMPT_CHAR_BUDGET: int = 48000
    CHUNK_CHARS: int = 12000
    MAX_MAP_CHUNKS: int = 8
    
    # Quiz Settings
    PASSING_SCORE: int = 70
    DEFAULT_QUIZ_QUESTIONS: int = 5
    MODULE_QUIZ_QUESTIONS: int = 5
    PHASE_QUIZ_QUESTIONS: int = 10
    FINAL_QUIZ_QUESTIONS: int = 20
    
    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_PER_HOUR: int = 1000
    AI_RATE_LIMIT_PER_MINUTE: int = 10
    
    # Logging
    LOG_LEVEL: str = "INFO"
    
    @property
    def is_development(self) -> bool:
        return self.DEBUG or self.ENVIRONMENT.lower() == "development"
    
    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_MB * 1024 * 1024
    
    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
