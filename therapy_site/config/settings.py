import json
import logging
import os
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class ApiConfig(BaseModel):
    title: str = Field(default="Therapy Site API", description="API title")
    version: str = Field(default="1.0.0", description="API version")
    cors_origins: list = Field(default=["*"], description="CORS allowed origins")
    debug: bool = Field(default=False, description="Enable debug mode")
    environment: str = Field(default="development", description="Deployment environment")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


class DatabaseConfig(BaseModel):
    url: str = Field(default="sqlite:///./therapy_site.db", description="SQLAlchemy database URL")
    echo: bool = Field(default=False, description="Echo SQL statements")


class RedisConfig(BaseModel):
    url: str = Field(default="redis://redis:6379", description="Redis connection URL")
    socket_timeout: int = Field(default=5, description="Redis socket timeout in seconds")


class RateLimitConfig(BaseModel):
    enabled: bool = Field(default=True, description="Enable rate limiting")
    max_requests: int = Field(default=10, ge=1, description="Max requests per window")
    window_seconds: int = Field(default=60, ge=1, description="Rate limit window in seconds")


class AuthConfig(BaseModel):
    session_cookie_name: str = Field(default="vt_admin_session", description="Admin session cookie")
    session_ttl_days: int = Field(default=14, ge=1, description="Session lifetime")
    session_remember_ttl_days: int = Field(default=30, ge=1, description="Remember-me session lifetime")
    password_rounds: int = Field(default=120000, ge=1000, description="PBKDF2 iteration count")
    reset_token_ttl_minutes: int = Field(default=60, ge=1, description="Password reset link lifetime")
    encryption_secret: Optional[str] = Field(default=None, description="Secret for at-rest encryption")
    session_secret: Optional[str] = Field(default=None, description="Secret for signing session cookies")
    algorithm: str = Field(default="HS256", description="Session cookie signing algorithm")


class SiteConfig(BaseModel):
    site_url: Optional[str] = Field(default=None, description="Public site URL")
    app_url: Optional[str] = Field(default=None, description="Application URL")
    platform_url: Optional[str] = Field(default=None, description="Platform-provided host name")
    public_dir: str = Field(default="public", description="Static files directory")

    @property
    def base_url(self) -> str:
        """Resolve the externally visible base URL"""
        if self.site_url:
            return self.site_url.rstrip("/")
        if self.app_url:
            return self.app_url.rstrip("/")
        if self.platform_url:
            return f"https://{self.platform_url}".rstrip("/")
        return "http://localhost:3000"


class CronConfig(BaseModel):
    secret: Optional[str] = Field(default=None, description="Shared bearer secret for cron callers")


class EmailConfig(BaseModel):
    resend_api_key: Optional[str] = Field(default=None, description="Resend API key")
    api_url: str = Field(default="https://api.resend.com", description="Resend API base URL")
    timeout_seconds: float = Field(default=10.0, description="HTTP timeout")


class WhatsAppConfig(BaseModel):
    account_sid: Optional[str] = Field(default=None, description="Twilio account SID")
    auth_token: Optional[str] = Field(default=None, description="Twilio auth token")
    from_number: Optional[str] = Field(default=None, description="Twilio WhatsApp sender")
    admin_number: Optional[str] = Field(default=None, description="Default WhatsApp recipient")
    api_url: str = Field(default="https://api.twilio.com", description="Twilio API base URL")

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)


class StorageConfig(BaseModel):
    url: Optional[str] = Field(default=None, description="Supabase project URL")
    service_key: Optional[str] = Field(default=None, description="Supabase service role key")
    media_bucket: str = Field(default="media", description="Bucket for uploaded media")
    backup_bucket: str = Field(default="backups", description="Bucket for backup exports")
    timeout_seconds: float = Field(default=60.0, description="HTTP timeout")


class MediaConfig(BaseModel):
    max_image_bytes: int = Field(default=4 * 1024 * 1024, description="Max image upload size")
    max_video_bytes: int = Field(default=4 * 1024 * 1024, description="Max video upload size")


class AIConfig(BaseModel):
    openrouter_api_key: Optional[str] = Field(default=None, description="OpenRouter API key")
    openrouter_url: str = Field(default="https://openrouter.ai/api/v1", description="OpenRouter API base URL")
    openrouter_models: list = Field(
        default=[
            "deepseek/deepseek-r1-0528:free",
            "google/gemini-2.5-flash-preview:free",
            "meta-llama/llama-4-maverick:free",
            "google/gemma-3-27b-it:free",
            "microsoft/phi-4-reasoning-plus:free",
            "qwen/qwen3-235b-a22b:free",
        ],
        description="Models tried in order until one answers",
    )
    google_api_key: Optional[str] = Field(default=None, description="Google AI API key")
    google_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta", description="Gemini API base URL"
    )
    google_model: str = Field(default="gemini-2.0-flash", description="Gemini model")
    timeout_seconds: float = Field(default=60.0, description="HTTP timeout")

    @property
    def configured(self) -> bool:
        return bool(self.openrouter_api_key or self.google_api_key)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    format: str = Field(default="%(message)s", description="Log format")
    enable_rich: bool = Field(default=True, description="Enable rich console logging")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()


class I18nConfig(BaseModel):
    default_locale: str = Field(default="tr", description="Default locale")
    supported_locales: list = Field(default=["tr", "en"], description="Supported locales")


class Config(BaseModel):
    """Main configuration model"""
    api: ApiConfig = Field(default_factory=ApiConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    site: SiteConfig = Field(default_factory=SiteConfig)
    cron: CronConfig = Field(default_factory=CronConfig)
    email: EmailConfig = Field(default_factory=EmailConfig)
    whatsapp: WhatsAppConfig = Field(default_factory=WhatsAppConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    media: MediaConfig = Field(default_factory=MediaConfig)
    ai: AIConfig = Field(default_factory=AIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    i18n: I18nConfig = Field(default_factory=I18nConfig)

    @classmethod
    def load_from_file(cls, config_path: str) -> "Config":
        """Load configuration from JSON file, then apply environment overrides"""
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_data = json.load(f)
            logger.info(f"Configuration loaded from {config_path}")
        except Exception as e:
            logger.error(f"Failed to load config from {config_path}: {str(e)}")
            logger.info("Using environment configuration")
            config_data = {}

        return cls(**_deep_update(config_data, _env_overrides()))

    @classmethod
    def load_from_env(cls) -> "Config":
        """Load configuration from environment variables"""
        config_data = _env_overrides()
        return cls(**config_data) if config_data else cls()

    def dict(self, **kwargs) -> Dict[str, Any]:
        """Convert to dictionary"""
        return self.model_dump(exclude_none=True, **kwargs)


def _first_env(*names: str) -> Optional[str]:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


def _env_overrides() -> Dict[str, Any]:
    config_data: Dict[str, Any] = {}

    def put(section: str, key: str, value: Any) -> None:
        if value is not None:
            config_data.setdefault(section, {})[key] = value

    put("api", "environment", os.getenv("ENVIRONMENT"))

    put("database", "url", os.getenv("DATABASE_URL"))
    put("redis", "url", os.getenv("REDIS_URL"))

    if os.getenv("RATE_LIMIT_REQUESTS"):
        put("rate_limit", "max_requests", int(os.getenv("RATE_LIMIT_REQUESTS")))
    if os.getenv("RATE_LIMIT_WINDOW"):
        put("rate_limit", "window_seconds", int(os.getenv("RATE_LIMIT_WINDOW")))
    if os.getenv("RATE_LIMIT_ENABLED"):
        put("rate_limit", "enabled", os.getenv("RATE_LIMIT_ENABLED").lower() == "true")

    put("auth", "encryption_secret", _first_env("ADMIN_ENCRYPTION_KEY", "NEXTAUTH_SECRET", "APP_SECRET"))
    put("auth", "session_secret", os.getenv("SESSION_SECRET"))

    put("site", "site_url", os.getenv("SITE_URL"))
    put("site", "app_url", os.getenv("APP_URL"))
    put("site", "platform_url", os.getenv("VERCEL_URL"))
    put("site", "public_dir", os.getenv("PUBLIC_DIR"))

    put("cron", "secret", os.getenv("CRON_SECRET"))

    put("email", "resend_api_key", os.getenv("RESEND_API_KEY"))

    put("whatsapp", "account_sid", os.getenv("TWILIO_ACCOUNT_SID"))
    put("whatsapp", "auth_token", os.getenv("TWILIO_AUTH_TOKEN"))
    put("whatsapp", "from_number", os.getenv("TWILIO_WHATSAPP_NUMBER"))
    put("whatsapp", "admin_number", os.getenv("ADMIN_WHATSAPP_NUMBER"))

    put("storage", "url", os.getenv("SUPABASE_URL"))
    put("storage", "service_key", os.getenv("SUPABASE_SERVICE_ROLE_KEY"))
    put("storage", "media_bucket", os.getenv("SUPABASE_MEDIA_BUCKET"))
    put("storage", "backup_bucket", os.getenv("SUPABASE_STORAGE_BUCKET"))

    put("ai", "openrouter_api_key", os.getenv("OPENROUTER_API_KEY"))
    put("ai", "google_api_key", os.getenv("GOOGLE_AI_API_KEY"))

    put("logging", "level", os.getenv("LOG_LEVEL"))
    put("i18n", "default_locale", os.getenv("DEFAULT_LOCALE"))

    return config_data


def _deep_update(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    result = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_update(result[key], value)
        else:
            result[key] = value
    return result


def load_config() -> Config:
    """Load configuration with priority: environment > config.json > defaults"""
    config_path = os.getenv("CONFIG_PATH", "config.json")

    if os.path.exists(config_path):
        return Config.load_from_file(config_path)
    else:
        logger.info(f"Config file not found at {config_path}, checking environment variables")
        return Config.load_from_env()


# Global config instance, built once at import
config = load_config()


def get_config() -> Config:
    """FastAPI dependency returning the process configuration"""
    return config
