"""Application configuration."""
import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class PhantomApiConfig:
    """Data Phantom API configuration."""

    base_url: str = "http://localhost:9092"
    api_prefix: str = "/data-phantom"
    api_token: str = ""  # Read from env or user input
    timeout: int = 30
    max_retries: int = 3
    backoff_factor: float = 1.0

    @property
    def root_url(self) -> str:
        """Base URL joined with the API prefix."""
        return f"{self.base_url.rstrip('/')}{self.api_prefix}"

    @classmethod
    def from_env(cls) -> "PhantomApiConfig":
        """Load config from environment variables."""
        return cls(
            base_url=os.getenv("PHANTOM_API_URL", "http://localhost:9092"),
            api_token=os.getenv("PHANTOM_API_TOKEN", ""),
            timeout=int(os.getenv("PHANTOM_API_TIMEOUT", "30")),
        )


@dataclass
class AppConfig:
    """Application configuration."""

    output_dir: str = "./output"
    poll_interval: float = 30.0
    notice_ttl: float = 3.0
    max_workers: int = 4
    log_level: str = "WARNING"
    phantom_api: Optional[PhantomApiConfig] = None

    def __post_init__(self):
        """Fill in default values."""
        if self.phantom_api is None:
            self.phantom_api = PhantomApiConfig.from_env()

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load config from environment variables."""
        return cls(
            output_dir=os.getenv("PHANTOM_OUTPUT_DIR", "./output"),
            poll_interval=float(os.getenv("PHANTOM_POLL_INTERVAL", "30")),
            log_level=os.getenv("PHANTOM_LOG_LEVEL", "WARNING"),
            phantom_api=PhantomApiConfig.from_env(),
        )


# Global instance
app_config = AppConfig.from_env()
