import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Settings:
    """
    Runtime configuration, read from the environment once at import time.

    Fields:
      - api_base_url: root of the storefront backend, paths are appended as /api/...
      - device_db_path: sqlite file backing durable device storage
      - request_timeout: seconds before an HTTP request counts as a network error
      - log_file: when set, log records go to this file instead of stderr
      - debug: DEBUG env var present
    """

    api_base_url: str = "http://localhost:5000"
    device_db_path: str = "data/device.sqlite"
    request_timeout: float = 10.0
    log_file: Optional[str] = None
    debug: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            api_base_url=os.getenv("STOREFRONT_API_URL", cls.api_base_url).rstrip("/"),
            device_db_path=os.getenv("STOREFRONT_DEVICE_DB", cls.device_db_path),
            request_timeout=float(
                os.getenv("STOREFRONT_TIMEOUT", str(cls.request_timeout))
            ),
            log_file=os.getenv("STOREFRONT_LOG_FILE") or None,
            debug=bool(os.getenv("DEBUG")),
        )


settings = Settings.from_env()
