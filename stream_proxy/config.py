# config.py
import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

# Browser front-end allowed to call the relay. Fixed, not read from env.
CORS_ORIGINS: List[str] = ["http://localhost:3000"]
CORS_METHODS: List[str] = ["GET"]


class Settings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "info"
    upstream_timeout: Optional[float] = None   # seconds; None waits forever


def load_settings() -> Settings:
    """Read settings from the environment (and .env, if present)."""
    values = {
        "host": os.getenv("HOST"),
        "port": os.getenv("PORT"),
        "log_level": os.getenv("LOG_LEVEL"),
        "upstream_timeout": os.getenv("UPSTREAM_TIMEOUT"),
    }
    # Unset or blank variables fall back to the model defaults.
    return Settings(**{k: v for k, v in values.items() if v not in (None, "")})
