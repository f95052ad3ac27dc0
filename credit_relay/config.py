from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(RuntimeError):
    """Raised at startup when a required setting is absent."""


class Settings(BaseSettings):
    PORT: int = 3000
    HTTPS_PORT: int | None = None
    SSL_CERTFILE: str | None = None
    SSL_KEYFILE: str | None = None

    SHOPIFY_API_KEY: str | None = None
    SHOPIFY_API_SECRET: SecretStr | None = None
    SHOPIFY_PROXY_SECRET: SecretStr | None = None
    SHOPIFY_REDIRECT_URI: str | None = None
    SHOPIFY_SCOPES: str = "write_discounts,read_discounts"
    SHOPIFY_API_VERSION: str = "2024-01"

    CREDIT_CHECK_URL: str = "http://54.148.31.213/api/creditCheck/"
    PROXY_DEMO_URL: str = "https://jsonplaceholder.typicode.com/todos/1"
    UPSTREAM_TIMEOUT_SECONDS: float = 10.0

    APP_BASE_URL: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"
    ENV: str = "dev"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def proxy_secret(self) -> str | None:
        """App Proxy signing secret; falls back to the app's API secret."""
        for secret in (self.SHOPIFY_PROXY_SECRET, self.SHOPIFY_API_SECRET):
            if secret is not None and secret.get_secret_value():
                return secret.get_secret_value()
        return None

    @property
    def api_secret(self) -> str | None:
        if self.SHOPIFY_API_SECRET is None:
            return None
        return self.SHOPIFY_API_SECRET.get_secret_value() or None

    @property
    def redirect_uri(self) -> str:
        if self.SHOPIFY_REDIRECT_URI:
            return self.SHOPIFY_REDIRECT_URI.rstrip("/")
        return f"{self.APP_BASE_URL.rstrip('/')}/auth/callback"


@lru_cache
def get_settings() -> Settings:
    return Settings()
