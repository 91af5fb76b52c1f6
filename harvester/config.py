"""Centralised settings for the catalog harvester.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _optional_int(name: str) -> Optional[int]:
    """Read an integer env var; unset, empty or ``0`` means "no limit"."""
    raw = os.environ.get(name, "").strip()
    if not raw or int(raw) <= 0:
        return None
    return int(raw)


def _flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("HARVEST_WORKSPACE", "data"))
    )
    output_file: Optional[Path] = field(
        default_factory=lambda: (
            Path(os.environ["HARVEST_OUTPUT"]) if os.environ.get("HARVEST_OUTPUT") else None
        )
    )

    @property
    def output_path(self) -> Path:
        """Path to the persisted product collection (JSON array)."""
        if self.output_file is not None:
            return self.output_file
        return self.workspace_dir / "output.json"

    # ------------------------------------------------------------------
    # Listing source / pagination
    # ------------------------------------------------------------------
    base_query: str = field(
        default_factory=lambda: os.environ.get(
            "CATALOG_BASE_QUERY",
            "https://www.ebay.com/sch/i.html?_from=R40&_nkw=nike&_sacat=0&rt=nc",
        )
    )
    page_param: str = field(
        default_factory=lambda: os.environ.get("CATALOG_PAGE_PARAM", "_pgn")
    )
    item_path_pattern: str = field(
        default_factory=lambda: os.environ.get("ITEM_PATH_PATTERN", r"/itm/\d{9,}")
    )
    item_selector: str = ".s-item"
    item_link_selector: str = ".s-item__link"
    next_page_selector: str = ".pagination__next"

    max_pages: Optional[int] = field(default_factory=lambda: _optional_int("MAX_PAGES"))
    max_consecutive_errors: int = field(
        default_factory=lambda: int(os.environ.get("MAX_CONSECUTIVE_ERRORS", "3"))
    )
    listing_timeout: float = field(
        default_factory=lambda: float(os.environ.get("LISTING_TIMEOUT", "15.0"))
    )
    page_delay_min: float = field(
        default_factory=lambda: float(os.environ.get("PAGE_DELAY_MIN", "3.0"))
    )
    page_delay_max: float = field(
        default_factory=lambda: float(os.environ.get("PAGE_DELAY_MAX", "8.0"))
    )

    # ------------------------------------------------------------------
    # Browser / item extraction
    # ------------------------------------------------------------------
    headless: bool = field(default_factory=lambda: _flag("BROWSER_HEADLESS", True))
    main_content_selector: str = "#mainContent"
    tabs_content_selector: str = ".tabs__content"
    navigation_timeout: float = field(
        default_factory=lambda: float(os.environ.get("NAVIGATION_TIMEOUT", "30.0"))
    )
    content_wait_timeout: float = field(
        default_factory=lambda: float(os.environ.get("CONTENT_WAIT_TIMEOUT", "20.0"))
    )
    max_retries: int = field(
        default_factory=lambda: int(os.environ.get("CONTENT_MAX_RETRIES", "2"))
    )
    retry_delay: float = field(
        default_factory=lambda: float(os.environ.get("CONTENT_RETRY_DELAY", "3.0"))
    )

    # ------------------------------------------------------------------
    # Batch execution
    # ------------------------------------------------------------------
    concurrency: int = field(
        default_factory=lambda: int(os.environ.get("SCRAPE_CONCURRENCY", "3"))
    )
    max_items_per_run: Optional[int] = field(
        default_factory=lambda: _optional_int("MAX_ITEMS_PER_RUN")
    )
    job_cooldown_min: float = field(
        default_factory=lambda: float(os.environ.get("JOB_COOLDOWN_MIN", "5.0"))
    )
    job_cooldown_max: float = field(
        default_factory=lambda: float(os.environ.get("JOB_COOLDOWN_MAX", "10.0"))
    )

    # ------------------------------------------------------------------
    # Structured-extraction model
    # ------------------------------------------------------------------
    llm_provider: str = field(
        default_factory=lambda: os.environ.get("LLM_PROVIDER", "openai")
    )
    openai_base_url: str = field(
        default_factory=lambda: os.environ.get("OPENAI_BASE_URL", "https://api.deepseek.com")
    )
    openai_api_key: str = field(
        default_factory=lambda: os.environ.get(
            "OPENAI_API_KEY", os.environ.get("DEEPSEEK_API_KEY", "")
        )
    )
    openai_chat_model: str = field(
        default_factory=lambda: os.environ.get("OPENAI_CHAT_MODEL", "deepseek-chat")
    )
    ollama_base_url: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_BASE_URL", "http://localhost:11434")
    )
    ollama_chat_model: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_CHAT_MODEL", "ministral-3:8b")
    )

    # ------------------------------------------------------------------
    # Read service
    # ------------------------------------------------------------------
    reload_debounce: float = field(
        default_factory=lambda: float(os.environ.get("RELOAD_DEBOUNCE", "1.0"))
    )
    watch_interval: float = field(
        default_factory=lambda: float(os.environ.get("WATCH_INTERVAL", "0.5"))
    )

    def ensure_workspace(self) -> None:
        """Create the directory holding the output file if it does not exist."""
        self.output_path.parent.mkdir(parents=True, exist_ok=True)


# Module-level singleton; import this everywhere:
#   from harvester.config import settings
settings = Settings()
