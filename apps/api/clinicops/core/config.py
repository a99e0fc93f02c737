"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
    
    # Environment
    ENV: str = "dev"
    VERSION: str = "0.1.0"
    
    # Database (tests run against in-memory SQLite)
    DATABASE_URL: str = "sqlite+pysqlite:///:memory:"
    
    # Hosted auth provider JWTs (supports key rotation)
    AUTH_JWT_SECRET: str = "change-this-in-production"
    AUTH_JWT_SECRET_PREVIOUS: str = ""  # Set during rotation, clear after
    AUTH_JWT_AUDIENCE: str = "authenticated"
    AUTH_JWT_EXPIRES_HOURS: int = 1  # Only used when minting local tokens (CLI/tests)
    
    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"
    
    # Internal trigger endpoints (workflow webhooks)
    INTERNAL_SECRET: str = ""
    
    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""
    
    # Rate Limiting (requests per minute)
    REDIS_URL: str = "redis://localhost:6379/0"
    RATE_LIMIT_API: int = 60
    RATE_LIMIT_PUBLIC: int = 30  # Lead form, public reports, invite lookup
    
    # Mailgun (outbound + inbound reply routing)
    MAILGUN_API_KEY: str = ""
    MAILGUN_DOMAIN: str = ""
    MAILGUN_BASE_URL: str = "https://api.mailgun.net"
    MAILGUN_FROM: str = ""  # Defaults to "Clinic <noreply@{domain}>"
    MAILGUN_WEBHOOK_SIGNING_KEY: str = ""
    
    # AI completions
    AI_PROVIDER: str = "openai"  # openai | gemini
    OPENAI_API_KEY: str = ""
    GEMINI_API_KEY: str = ""
    AI_MODEL: str = ""  # Empty = provider default
    AI_TIMEOUT_SECONDS: float = 30.0
    
    # Leave defaults for new users
    DEFAULT_ANNUAL_LEAVE_DAYS: int = 30
    DEFAULT_SICK_LEAVE_DAYS: int = 90
    
    # Published marketing reports (0 = links never expire)
    PUBLIC_REPORT_TTL_DAYS: int = 0
    
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]
    
    @property
    def jwt_secrets(self) -> list[str]:
        """Returns list of valid secrets (current first, then previous if set)."""
        secrets = [self.AUTH_JWT_SECRET]
        if self.AUTH_JWT_SECRET_PREVIOUS:
            secrets.append(self.AUTH_JWT_SECRET_PREVIOUS)
        return secrets
    
    @property
    def is_dev(self) -> bool:
        return self.ENV == "dev"
    
    @property
    def mailgun_configured(self) -> bool:
        return bool(self.MAILGUN_API_KEY and self.MAILGUN_DOMAIN)
    
    @property
    def mailgun_from(self) -> str:
        return self.MAILGUN_FROM or f"Clinic <noreply@{self.MAILGUN_DOMAIN}>"
    
    @property
    def ai_api_key(self) -> str:
        """API key for the configured AI provider."""
        if self.AI_PROVIDER == "gemini":
            return self.GEMINI_API_KEY
        return self.OPENAI_API_KEY


settings = Settings()
