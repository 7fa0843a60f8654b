"""
Application Configuration
"""
from datetime import timedelta
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings
from typing import Optional, Tuple

from kiosk_compliance.models.compliance_override import OverrideField, OVERRIDE_FIELDS


ANONYMOUS_CUSTOMER_ID = "47ac1184-8102-11e7-9079-8f13a7117867"


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    
    # MongoDB Configuration
    mongodb_uri: str
    database_name: str = "kiosk"
    
    # Customer Configuration
    anonymous_customer_id: str = ANONYMOUS_CUSTOMER_ID
    customer_page_size: int = 20
    daily_volume_window_hours: int = 24
    audit_in_transaction: bool = False
    
    # Logging
    log_level: str = "INFO"
    log_format: str = "text"
    
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get or create the settings instance
    
    Returns:
        Settings: Application settings
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


class CustomerServiceConfig(BaseModel):
    """Immutable configuration owned by a CustomerService"""
    
    anonymous_customer_id: str = ANONYMOUS_CUSTOMER_ID
    page_size: int = Field(20, gt=0)
    daily_volume_window: timedelta = timedelta(hours=24)
    override_fields: Tuple[OverrideField, ...] = OVERRIDE_FIELDS
    audit_in_transaction: bool = False
    
    class Config:
        frozen = True
    
    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "CustomerServiceConfig":
        """Build the service configuration from application settings"""
        settings = settings or get_settings()
        return cls(
            anonymous_customer_id=settings.anonymous_customer_id,
            page_size=settings.customer_page_size,
            daily_volume_window=timedelta(hours=settings.daily_volume_window_hours),
            audit_in_transaction=settings.audit_in_transaction,
        )
