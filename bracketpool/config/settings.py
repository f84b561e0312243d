"""
Strongly typed configuration using pydantic-settings.

All settings are validated at startup and loaded from:
1. Default values defined here
2. .env file (if present)
3. Environment variables (highest priority)

Environment variable naming:
- ContestSettings: CONTEST_TOURNAMENT_YEAR, CONTEST_TIE_BREAKER_LOW, etc.
- ApiSettings: API_HOST, API_PORT, API_CORS_ORIGINS
- ObservabilitySettings: ENVIRONMENT, LOG_LEVEL (no prefix)
"""
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
from pathlib import Path


class ContestSettings(BaseSettings):
    """Season rules for the bracket contest."""
    
    model_config = SettingsConfigDict(env_prefix="CONTEST_")
    
    tournament_year: int = Field(default=2026, ge=2000)
    
    # Tie breaker (predicted championship total)
    tie_breaker_required: bool = Field(default=True, description="Warn when a submission has no tie breaker")
    tie_breaker_low: int = Field(default=50, ge=0)
    tie_breaker_high: int = Field(default=500, ge=0)
    
    # Site config sheet
    site_config_ttl_seconds: int = Field(default=300, ge=0, description="Parameter sheet cache TTL")
    site_config_path: Optional[Path] = Field(default=None, description="Local CSV export of the parameter sheet")
    
    # Optional tournament definition (JSON); the 64-team default is used otherwise
    tournament_config_path: Optional[Path] = Field(default=None)
    
    @field_validator('tie_breaker_high')
    @classmethod
    def high_gte_low(cls, v, info):
        if 'tie_breaker_low' in info.data and v < info.data['tie_breaker_low']:
            raise ValueError('tie_breaker_high must be >= tie_breaker_low')
        return v


class ApiSettings(BaseSettings):
    """HTTP server settings."""
    
    model_config = SettingsConfigDict(env_prefix="API_")
    
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1024, le=65535)
    cors_origins: List[str] = Field(default=["http://localhost:3000"])


class ObservabilitySettings(BaseSettings):
    """Logging and metrics settings."""
    
    model_config = SettingsConfigDict(env_prefix="")  # Direct: ENVIRONMENT, LOG_LEVEL
    
    environment: str = Field(default="development", pattern="^(development|staging|production)$")
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")


class Settings(BaseSettings):
    """
    Root settings aggregating all subsections.
    
    Usage:
        from bracketpool.config import settings
        
        settings.contest.tie_breaker_low
        settings.api.port
        settings.observability.log_level
    """
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    contest: ContestSettings = Field(default_factory=ContestSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
