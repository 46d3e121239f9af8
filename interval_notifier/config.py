"""Configuration - service settings loaded from the environment."""
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv
load_dotenv(override=True)


@dataclass
class Settings:
    """Service settings."""

    # HTTP surface
    host: str = "127.0.0.1"
    port: int = 8790
    debug: bool = False
    log_level: str = "INFO"

    # Data directory (notifier.yaml lives here)
    data_dir: Path = field(default_factory=lambda: Path.home() / ".interval-notifier")

    # Skip a reconcile pass if the previous one finished this recently
    reconcile_debounce_seconds: float = 5.0

    # Host notification permission
    notification_permission: str = "not_determined"
    grant_on_request: bool = True

    @property
    def store_path(self) -> Path:
        return self.data_dir / "notifier.yaml"

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        debug = os.getenv("DEBUG", "").lower() in ("1", "true")
        return cls(
            host=os.getenv("HOST", "127.0.0.1"),
            port=int(os.getenv("PORT", "8790")),
            debug=debug,
            log_level=os.getenv("LOG_LEVEL", "DEBUG" if debug else "INFO"),

            data_dir=Path(os.getenv(
                "NOTIFIER_DATA_DIR", str(Path.home() / ".interval-notifier")
            )).expanduser(),

            reconcile_debounce_seconds=float(
                os.getenv("NOTIFIER_RECONCILE_DEBOUNCE_SECONDS", "5")
            ),

            notification_permission=os.getenv(
                "NOTIFIER_PERMISSION", "not_determined"
            ).lower(),
            grant_on_request=os.getenv(
                "NOTIFIER_GRANT_ON_REQUEST", "true"
            ).lower() in ("1", "true"),
        )


# Global settings instance
settings = Settings.from_env()
