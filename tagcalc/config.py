"""TagCalc configuration management.

Loads configuration from environment variables with sensible defaults.
The Shopify store and access token are required; everything else falls
back to the values the storefront has always run with.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass
class ShopifyConfig:
    """Shopify Admin REST API connection settings."""

    store: str
    access_token: str
    api_version: str = "2025-01"
    timeout_seconds: float = 15.0

    @property
    def base_url(self) -> str:
        """Admin API root, e.g. https://shop.myshopify.com/admin/api/2025-01."""
        store = self.store.strip().rstrip("/")
        if not store.startswith(("http://", "https://")):
            store = f"https://{store}"
        return f"{store}/admin/api/{self.api_version}"


@dataclass
class VariantConfig:
    """Variant housekeeping against the platform's per-product cap."""

    variant_limit: int = 95  # Shopify hard cap is 100; leave room for the eviction race
    lookup_limit: int = 250  # Largest page the variants endpoint returns
    eviction_mode: str = "background"  # background or inline


@dataclass
class MetafieldConfig:
    """Price annotation attached to newly created variants."""

    enabled: bool = True
    namespace: str = "custom"
    key: str = "dynamic_price"
    type: str = "single_line_text_field"


@dataclass
class WebConfig:
    """Inbound HTTP settings."""

    host: str = "0.0.0.0"
    port: int = 3000
    allowed_origin: str = "https://www.tagshop.co.uk"


@dataclass
class AppConfig:
    """Root application configuration.

    Loads from environment variables with fail-fast on missing required values.
    """

    shopify: ShopifyConfig
    log_level: str = "INFO"
    json_logs: bool = False

    variants: VariantConfig = field(default_factory=VariantConfig)
    metafields: MetafieldConfig = field(default_factory=MetafieldConfig)
    web: WebConfig = field(default_factory=WebConfig)

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables.

        Required environment variables:
        - SHOPIFY_STORE: Store domain (e.g. "tagshop.myshopify.com")
        - ACCESS_TOKEN: Admin API access token

        Raises:
            KeyError: If required environment variables are missing
            ValueError: If EVICTION_MODE is not "background" or "inline"
        """
        store = os.environ.get("SHOPIFY_STORE")
        if not store:
            raise KeyError(
                "SHOPIFY_STORE environment variable is required. "
                "Example: tagshop.myshopify.com"
            )

        access_token = os.environ.get("ACCESS_TOKEN")
        if not access_token:
            raise KeyError("ACCESS_TOKEN environment variable is required.")

        eviction_mode = os.getenv("EVICTION_MODE", "background").lower()
        if eviction_mode not in ("background", "inline"):
            raise ValueError(
                f"Invalid EVICTION_MODE: {eviction_mode!r}. Expected: background, inline."
            )

        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            json_logs=os.getenv("JSON_LOGS", "false").lower() == "true",
            shopify=ShopifyConfig(
                store=store,
                access_token=access_token,
                api_version=os.getenv("SHOPIFY_API_VERSION", "2025-01"),
                timeout_seconds=float(os.getenv("SHOPIFY_TIMEOUT_SECONDS", "15")),
            ),
            variants=VariantConfig(
                variant_limit=int(os.getenv("VARIANT_LIMIT", "95")),
                lookup_limit=int(os.getenv("VARIANT_LOOKUP_LIMIT", "250")),
                eviction_mode=eviction_mode,
            ),
            metafields=MetafieldConfig(
                enabled=os.getenv("METAFIELDS_ENABLED", "true").lower() == "true",
                namespace=os.getenv("METAFIELD_NAMESPACE", "custom"),
                key=os.getenv("METAFIELD_KEY", "dynamic_price"),
                type=os.getenv("METAFIELD_TYPE", "single_line_text_field"),
            ),
            web=WebConfig(
                host=os.getenv("HOST", "0.0.0.0"),
                port=int(os.getenv("PORT", "3000")),
                allowed_origin=os.getenv("ALLOWED_ORIGIN", "https://www.tagshop.co.uk"),
            ),
        )


# Singleton instance (lazy-loaded)
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create singleton AppConfig instance from environment.

    Raises:
        KeyError: If required environment variables are missing
    """
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reset_config() -> None:
    """Drop the cached singleton so the next get_config() re-reads the environment."""
    global _config
    _config = None
