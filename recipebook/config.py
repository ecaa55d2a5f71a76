from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

_DEFAULT_DATA = Path(__file__).resolve().parent / "data" / "processed" / "recipes.csv"


@dataclass(frozen=True)
class CatalogConfig:
    data_path: Path = Path(os.getenv("RECIPEBOOK_DATA", str(_DEFAULT_DATA)))
    default_page_size: int = 20
    page_sizes: tuple[int, ...] = (10, 20, 50, 100)
    max_page_size: int = 100
    page_strip_width: int = 5
    cache_ttl: float = float(os.getenv("RECIPEBOOK_CACHE_TTL", "300"))


@dataclass(frozen=True)
class SessionConfig:
    secret_key: str = os.getenv("SESSION_SECRET", "recipebook-secret-change-in-production")
    browse_key: str = "browse_sid"
    user_key: str = "user"


DEFAULT_CATALOG_CONFIG = CatalogConfig()
DEFAULT_SESSION_CONFIG = SessionConfig()
