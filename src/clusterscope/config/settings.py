# config/settings.py
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from enum import Enum
from dotenv import load_dotenv

# Load .env file explicitly
load_dotenv()

class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Environment(str, Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class AzureSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="AZURE_")
    
    subscription_id: Optional[str] = Field(None, description="Default Azure subscription ID")
    tenant_id: Optional[str] = Field(None, description="Default Azure tenant ID")
    client_id: Optional[str] = Field(None, description="Default service principal client ID")
    client_secret: Optional[str] = Field(None, description="Default service principal secret")


class ClusterAPISettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CLUSTER_API_")
    
    timeout_seconds: float = Field(10.0, description="Timeout for each cluster API server call")
    verify_tls: bool = Field(False, description="Verify the cluster API server certificate")
    default_tail_lines: int = Field(200, description="Default number of pod log lines returned")


class CostSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="COST_")
    
    default_days: int = Field(30, description="Default cost window in days")
    max_days: int = Field(90, description="Largest accepted cost window in days")
    retry_attempts: int = Field(3, description="Attempts for throttled cost queries")
    retry_backoff_factor: float = Field(1.5, description="Backoff factor for throttled cost queries")


class APISettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="API_")
    
    host: str = Field("0.0.0.0", description="API host")
    port: int = Field(5000, description="API port")
    reload: bool = Field(False, description="Enable auto-reload in development")
    access_log: bool = Field(True, description="Enable access logging")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
    
    environment: Environment = Field(Environment.DEVELOPMENT, description="Environment")
    debug: bool = Field(False, description="Debug mode")
    log_level: LogLevel = Field(LogLevel.INFO, description="Log level")
    log_format: str = Field("text", description="Log format (json or text)")
    
    azure: AzureSettings = Field(default_factory=lambda: AzureSettings())
    cluster_api: ClusterAPISettings = Field(default_factory=lambda: ClusterAPISettings())
    cost: CostSettings = Field(default_factory=lambda: CostSettings())
    api: APISettings = Field(default_factory=lambda: APISettings())

    @field_validator('environment', mode='before')
    @classmethod
    def validate_environment(cls, v):
        if isinstance(v, str):
            return Environment(v.lower())
        return v

    @field_validator('log_level', mode='before')
    @classmethod
    def validate_log_level(cls, v):
        if isinstance(v, str):
            return LogLevel(v.upper())
        return v

    @classmethod
    def create_from_env(cls) -> "Settings":
        """Create settings instance from environment variables."""
        return cls()
