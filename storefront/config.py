"""
Configuration management for the storefront.

Loads settings from an optional YAML config file and overlays environment
variables (a local .env file is honoured).
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
import os
import yaml

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()


def _project_root() -> Path:
    """Return project root (parent of storefront package)."""
    return Path(__file__).resolve().parent.parent


DEFAULT_CONFIG_PATH = _project_root() / "config" / "default.yaml"

DEV_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:5174",
    "http://localhost:3000",
]


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Runtime settings for the storefront API."""

    # Server
    env: str = "development"
    port: int = 5001
    frontend_url: Optional[str] = None
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./storefront.db"

    # Auth
    jwt_secret: str = "fallback-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_days: int = 7
    enable_dev_routes: bool = True

    # Uploads (served under /uploads)
    uploads_dir: str = str(_project_root() / "uploads")
    max_upload_mb: int = 10
    allowed_image_types: List[str] = field(
        default_factory=lambda: ["jpeg", "jpg", "png", "gif", "webp"]
    )

    # Checkout
    verify_item_prices: bool = True

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @property
    def cors_origins(self) -> List[str]:
        origins = list(DEV_ORIGINS)
        if self.frontend_url:
            origins.append(self.frontend_url)
        return origins

    @classmethod
    def from_yaml(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load settings from YAML file, then apply environment overrides."""
        path = config_path or DEFAULT_CONFIG_PATH
        data = {}
        if path.exists():
            with open(path, 'r') as f:
                data = yaml.safe_load(f) or {}

        server_config = data.get('server', {})
        database_config = data.get('database', {})
        auth_config = data.get('auth', {})
        uploads_config = data.get('uploads', {})
        orders_config = data.get("orders", {})

        settings = cls(
            env=server_config.get('env', 'development'),
            port=server_config.get('port', 5001),
            frontend_url=server_config.get('frontend_url'),
            log_level=server_config.get("log_level", "INFO"),
            database_url=database_config.get('url', 'sqlite:///./storefront.db'),
            jwt_secret=auth_config.get('jwt_secret', 'fallback-secret'),
            jwt_expire_days=auth_config.get('expire_days', 7),
            uploads_dir=uploads_config.get('dir', str(_project_root() / "uploads")),
            max_upload_mb=uploads_config.get('max_mb', 10),
            verify_item_prices=orders_config.get("verify_item_prices", True),
        )
        settings.apply_env()
        return settings

    def apply_env(self) -> None:
        """Overlay environment variables on top of file/default values."""
        self.env = os.getenv("ENV", self.env)
        self.port = int(os.getenv("PORT", self.port))
        self.frontend_url = os.getenv("FRONTEND_URL", self.frontend_url)
        self.log_level = os.getenv("LOG_LEVEL", self.log_level)
        self.database_url = os.getenv("DATABASE_URL") or self.database_url
        self.jwt_secret = os.getenv("JWT_SECRET") or self.jwt_secret
        self.jwt_expire_days = int(os.getenv("JWT_EXPIRE_DAYS", self.jwt_expire_days))
        # Railway mounts a persistent volume here in production
        self.uploads_dir = (
            os.getenv("UPLOADS_DIR")
            or os.getenv("RAILWAY_VOLUME_MOUNT_PATH")
            or self.uploads_dir
        )
        self.max_upload_mb = int(os.getenv("MAX_UPLOAD_MB", self.max_upload_mb))
        self.enable_dev_routes = _env_flag("ENABLE_DEV_ROUTES", not self.is_production)
        self.verify_item_prices = _env_flag("VERIFY_ITEM_PRICES", self.verify_item_prices)


# Global settings instance
settings = Settings.from_yaml()
