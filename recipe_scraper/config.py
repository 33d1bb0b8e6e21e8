"""Run configuration for the recipe scraper.

Values come from the environment (a ``.env`` file is loaded first by the CLI)
and can be overridden per run by command-line flags.
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

# Page rendering
NAV_TIMEOUT_MS = 30000
PAGE_SETTLE_MS = 2000
TITLE_WAIT_MS = 10000

# Listing discovery
LISTING_SETTLE_MS = 3000
SCROLL_STEPS = 5
SCROLL_PAUSE_MS = 1000
LOAD_MORE_SETTLE_MS = 3000
BETWEEN_PAGES_MS = 2000
MAX_LISTING_PAGES = 100

# Pacing against the target site and the store
STAGGER_SECONDS = 1.0
EXISTENCE_CHECK_DELAY = 0.05


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class ScraperConfig:
    max_recipes: int = 3000
    batch_size: int = 5
    delay_between_batches_ms: int = 5000
    delay_between_recipes_ms: int = 2000
    skip_image_upload: bool = False
    dry_run: bool = False
    target_tag: Optional[str] = "weeknight"
    debug: bool = False
    headless: bool = True
    db_path: Path = Path("data/recipes.db")
    media_dir: Path = Path("data/media")
    debug_dir: Path = Path("debug")
    max_runtime_seconds: Optional[int] = None
    storage_state: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "ScraperConfig":
        return cls(
            max_recipes=_env_int("MAX_RECIPES", 3000),
            batch_size=max(1, _env_int("BATCH_SIZE", 5)),
            delay_between_batches_ms=_env_int("DELAY_BETWEEN_BATCHES", 5000),
            delay_between_recipes_ms=_env_int("DELAY_BETWEEN_RECIPES", 2000),
            skip_image_upload=_env_bool("SKIP_IMAGE_UPLOAD"),
            dry_run=_env_bool("DRY_RUN"),
            target_tag=os.getenv("TARGET_TAG") or "weeknight",
            debug=_env_bool("DEBUG_SCRAPER"),
            headless=_env_bool("HEADLESS", True),
            db_path=Path(os.getenv("RECIPE_DB_PATH", "data/recipes.db")),
            media_dir=Path(os.getenv("MEDIA_DIR", "data/media")),
            debug_dir=Path(os.getenv("DEBUG_DIR", "debug")),
            max_runtime_seconds=_env_int("MAX_RUNTIME_SECONDS", 0) or None,
            storage_state=Path(os.environ["STORAGE_STATE"]) if os.getenv("STORAGE_STATE") else None,
        )

    def with_overrides(self, **overrides) -> "ScraperConfig":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)
