"""Configuration management for the Dental Plan Administration API"""

from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings

    Every field is read from the environment variable of the same name
    (case-insensitive), e.g. ``DATABASE_URL`` or ``COST_SHARE_MOVE_POLICY``.
    """

    # Database
    database_url: str = Field(default="sqlite:///./dental_admin.db")

    # API Configuration - comma separated
    api_keys: str = Field(default="dev-key-123,admin-key-456")
    rate_limit_per_minute: int = Field(default=120)
    default_user_id: str = Field(default="temp-admin-user")

    # Plan configuration
    catalog_path: Optional[str] = Field(default=None)
    max_classes: int = Field(default=6)
    cost_share_move_policy: str = Field(default="overwrite")  # overwrite | preserve

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    # Application Configuration
    app_name: str = "Dental Plan Administration API"
    app_version: str = "0.1.0"
    debug: bool = Field(default=False)

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Ignore extra fields in environment

    def get_api_keys(self) -> List[str]:
        """Parse comma-separated API keys"""
        return [key.strip() for key in self.api_keys.split(",") if key.strip()]


# Global settings instance
settings = Settings()
