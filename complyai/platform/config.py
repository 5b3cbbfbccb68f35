from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── App ─────────────────────────────────────
    APP_NAME: str = "ComplyAI Search"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    DEBUG: bool = True
    LOG_DIR: str = "logs"

    # ── Database ────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./complyai-search.db"

    # ── OpenAI ──────────────────────────────────
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4-turbo"
    EMBEDDING_MODEL: str = "text-embedding-3-small"
    SUGGESTION_TIMEOUT_SECONDS: float = 20
    SUGGESTION_MAX_RETRIES: int = 2
    EMBEDDING_TIMEOUT_SECONDS: float = 30

    # ── Browser / scanner ───────────────────────
    BROWSER_TYPE: Literal["chrome", "firefox", "edge"] = "chrome"
    BROWSER_DRIVER_PATH: Optional[str] = None
    HEADLESS: bool = True
    NAVIGATION_TIMEOUT_SECONDS: int = 120
    AXE_SCRIPT_PATH: str = "axe.min.js"  # axe-core build, e.g. node_modules/axe-core/axe.min.js

    # ── Crawl / indexing ────────────────────────
    CRAWL_MAX_DEPTH: int = 2
    CRAWL_PAGE_TIMEOUT_SECONDS: int = 30
    PAGE_BATCH_SIZE: int = 5
    SUGGESTION_BATCH_SIZE: int = 5

    # None keeps the suggestion cache unbounded for the process lifetime
    SUGGESTION_CACHE_MAX_ENTRIES: Optional[int] = None

    # ── Search ──────────────────────────────────
    SEMANTIC_CANDIDATE_LIMIT: int = 1000
    SIMILARITY_THRESHOLD: float = 0.3

    class Config:
        env_file = str(Path(__file__).parent.parent.parent / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
