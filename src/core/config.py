"""Application configuration management using Pydantic Settings."""

from enum import Enum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MediaBackend(str, Enum):
    """Where uploaded photo and voice assets are stored."""

    BLOB_STORE = "blob_store"
    MEDIA_ENDPOINT = "media_endpoint"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Required settings will raise validation errors if not provided.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="yourverse-backend", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins",
    )

    # Auth redirects
    auth_redirect_url: str = Field(
        ...,
        description="Redirect URL for verification, password reset and OAuth callbacks",
    )

    # Supabase
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_secret_key: str = Field(..., description="Supabase secret key for backend operations")
    supabase_signing_key_jwk: str = Field(..., description="Supabase signing key JWK (JSON string) for JWT token verification")

    # Session
    session_cookie_name: str = Field(default="yourverse_session", description="Session cookie name")
    session_cookie_max_age: int = Field(default=3600, description="Session cookie max age in seconds")
    session_cookie_secure: bool = Field(default=True, description="Use secure cookies (HTTPS only)")
    jwt_audience: str = Field(default="authenticated", description="Expected audience claim of access tokens")
    oauth_verifier_cookie_name: str = Field(default="yourverse_oauth_verifier", description="PKCE code verifier cookie name")
    recent_login_max_age_seconds: int = Field(
        default=300,
        description="Max age of the last sign-in for sensitive operations such as account deletion",
    )

    # Document store
    profile_table: str = Field(default="users", description="Table holding one profile record per user")
    redirect_returning_users: bool = Field(
        default=True,
        description="Send users whose profile already has an age to the dashboard on load",
    )

    # Media storage
    media_backend: MediaBackend = Field(default=MediaBackend.BLOB_STORE, description="Backend that owns photo and voice assets")
    photo_bucket: str = Field(default="profile_photos", description="Storage bucket for profile photos")
    voice_bucket: str = Field(default="voice_intros", description="Storage bucket for voice intros")
    media_endpoint_url: str = Field(default="https://api.cloudinary.com/v1_1", description="Third-party media upload base URL")
    media_cloud_name: str = Field(default="", description="Cloud name segment of the media upload URL")
    media_image_preset: str = Field(default="", description="Unsigned upload preset for images")
    media_audio_preset: str = Field(default="", description="Unsigned upload preset for audio/video")

    # Limits
    max_request_body_size: int = Field(default=15 * 1024 * 1024, description="Max request body size in bytes")
    max_photo_bytes: int = Field(default=5 * 1024 * 1024, description="Max profile photo size in bytes")
    max_voice_bytes: int = Field(default=10 * 1024 * 1024, description="Max voice recording size in bytes")

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def media_upload_url_base(self) -> str:
        """Media endpoint URL scoped to the configured cloud."""
        return f"{self.media_endpoint_url.rstrip('/')}/{self.media_cloud_name}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings: Application settings instance.

    Note:
        Settings are cached using lru_cache for performance.
        Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
