"""
Configuration Management

Pydantic-settings based configuration for the SES image labeler.
All settings can be overridden via environment variables.
"""

from email.utils import parseaddr
from functools import lru_cache
from typing import Literal

from email_validator import EmailNotValidError, validate_email
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables are prefixed with IMAGE_LABELER_ and are case-insensitive.
    Example: IMAGE_LABELER_S3_BUCKET_NAME=my-ses-inbox

    The variable names used by the CloudFormation template
    (SES_S3_BUCKET_NAME, SES_AWS_REGION, SERVICE_FROM_ADDRESS) are
    accepted as aliases.
    """

    model_config = SettingsConfigDict(
        env_prefix="IMAGE_LABELER_",
        env_file=[".env.local", ".env"],  # Try .env.local first
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # S3 Configuration
    s3_bucket_name: str = Field(
        default="ses-received-emails",
        validation_alias=AliasChoices(
            "IMAGE_LABELER_S3_BUCKET_NAME",
            "SES_S3_BUCKET_NAME",
        ),
        description="S3 bucket the SES receipt rule writes raw emails to",
    )
    s3_key_prefix: str = Field(
        default="",
        description="Object key prefix configured on the SES S3 action",
    )
    s3_endpoint_url: str | None = Field(
        default=None,
        description="S3 endpoint URL (for local development)",
    )

    # SES Configuration
    ses_from_address: str = Field(
        default="No Reply <no-reply@example.com>",
        validation_alias=AliasChoices(
            "IMAGE_LABELER_SES_FROM_ADDRESS",
            "SERVICE_FROM_ADDRESS",
        ),
        description="Verified SES identity replies are sent from",
    )
    ses_configuration_set: str | None = Field(
        default=None,
        description="SES configuration set for tracking",
    )
    ses_endpoint_url: str | None = Field(
        default=None,
        description="SES endpoint URL (use 'mock' for local)",
    )

    # Rekognition Configuration
    rekognition_max_labels: int | None = Field(
        default=None,
        ge=1,
        description="MaxLabels passed to DetectLabels (service default when unset)",
    )
    rekognition_min_confidence: float | None = Field(
        default=None,
        ge=0,
        le=100,
        description="MinConfidence passed to DetectLabels (service default when unset)",
    )
    rekognition_endpoint_url: str | None = Field(
        default=None,
        description="Rekognition endpoint URL (use 'mock' for local)",
    )

    # AWS Configuration
    aws_region: str = Field(
        default="us-west-2",
        validation_alias=AliasChoices(
            "IMAGE_LABELER_AWS_REGION",
            "SES_AWS_REGION",
        ),
        description="AWS region",
    )

    # Application Configuration
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    @field_validator("ses_from_address")
    @classmethod
    def _validate_from_address(cls, value: str) -> str:
        """Accept 'Display Name <addr>' or a bare address; validate the address part."""
        _, address = parseaddr(value)
        if not address:
            raise ValueError(f"Not an email address: {value!r}")
        try:
            validate_email(address, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValueError(f"Invalid sender address {address!r}: {e}") from e
        return value

    @property
    def s3_config(self) -> dict:
        """S3 client configuration."""
        config = {"region_name": self.aws_region}
        if self.s3_endpoint_url and self.s3_endpoint_url != "mock":
            config["endpoint_url"] = self.s3_endpoint_url
        return config

    @property
    def ses_config(self) -> dict:
        """SES client configuration."""
        config = {"region_name": self.aws_region}
        if self.ses_endpoint_url and self.ses_endpoint_url != "mock":
            config["endpoint_url"] = self.ses_endpoint_url
        return config

    @property
    def rekognition_config(self) -> dict:
        """Rekognition client configuration."""
        config = {"region_name": self.aws_region}
        if self.rekognition_endpoint_url and self.rekognition_endpoint_url != "mock":
            config["endpoint_url"] = self.rekognition_endpoint_url
        return config


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache to ensure settings are loaded only once.
    Call get_settings.cache_clear() in tests after changing the environment.
    """
    return Settings()
