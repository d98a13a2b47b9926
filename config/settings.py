"""Application settings and configuration."""
import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

ENV_PATH = Path(__file__).resolve().parent / '.env'
load_dotenv(dotenv_path=ENV_PATH)


def _int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


class Settings:
    """
    Pipeline configuration. Every value can be overridden from config/.env
    or the process environment.

    ─── UPSTREAM QUOTA ────────────────────────────────────────────────────
    Riot application limits are 20 req / 1s and 100 req / 120s per region.
    Scheduler traffic ("batch") leaves BATCH_RESERVE_* slots free so a user
    triggered enrichment ("overhead") never queues behind the crawler.
    ──────────────────────────────────────────────────────────────────────
    """

    RIOT_API_KEY: str = os.getenv('RIOT_API_KEY', '')
    CRON_SECRET:  str = os.getenv('CRON_SECRET', '')

    # ── Rate limits (application-wide, per region) ──────────────────────
    APP_RATE_LIMIT_PER_1_SEC: int = _int('APP_RATE_LIMIT_PER_1_SEC', 20)
    APP_RATE_LIMIT_PER_2_MIN: int = _int('APP_RATE_LIMIT_PER_2_MIN', 100)

    BATCH_RESERVE_1_SEC: int = _int('BATCH_RESERVE_1_SEC', 2)
    BATCH_RESERVE_2_MIN: int = _int('BATCH_RESERVE_2_MIN', 10)

    # ── Rate limits (method-level, per region + endpoint class) ─────────
    MATCH_IDS_RATE_LIMIT_PER_1_SEC: int = _int('MATCH_IDS_RATE_LIMIT_PER_1_SEC', 20)
    MATCH_IDS_RATE_LIMIT_PER_2_MIN: int = _int('MATCH_IDS_RATE_LIMIT_PER_2_MIN', 100)

    MATCH_RATE_LIMIT_PER_1_SEC: int = _int('MATCH_RATE_LIMIT_PER_1_SEC', 20)
    MATCH_RATE_LIMIT_PER_2_MIN: int = _int('MATCH_RATE_LIMIT_PER_2_MIN', 100)

    TIMELINE_RATE_LIMIT_PER_1_SEC: int = _int('TIMELINE_RATE_LIMIT_PER_1_SEC', 20)
    TIMELINE_RATE_LIMIT_PER_2_MIN: int = _int('TIMELINE_RATE_LIMIT_PER_2_MIN', 100)

    # Budgets below this fail immediately instead of sleeping
    RATE_LIMIT_MIN_GRANULARITY_MS: int = _int('RATE_LIMIT_MIN_GRANULARITY_MS', 50)
    DEFAULT_WAIT_BUDGET_MS:        int = _int('DEFAULT_WAIT_BUDGET_MS', 10_000)

    # ── Paths ──────────────────────────────────────────────────────────────
    BASE_DIR: Path = Path(__file__).resolve().parent.parent
    DATA_DIR: Path = BASE_DIR / 'data'
    DB_DIR:   Path = DATA_DIR / 'db'
    LOG_DIR:  Path = DATA_DIR / 'logs'
    DB_PATH:  Path = Path(os.getenv('DB_PATH', str(DB_DIR / 'pipeline.sqlite')))

    ITEM_CATALOG_PATH: Optional[Path] = (
        Path(os.environ['ITEM_CATALOG_PATH']) if os.getenv('ITEM_CATALOG_PATH') else None
    )

    # ── HTTP ───────────────────────────────────────────────────────────────
    REQUEST_TIMEOUT: int = _int('REQUEST_TIMEOUT', 10)

    # ── Invocation budget ──────────────────────────────────────────────────
    # Hosting platform kills the invocation at MAX_DURATION; stop starting
    # new work once less than SAFETY_BUFFER remains.
    MAX_DURATION_SECONDS:  int = _int('MAX_DURATION_SECONDS', 50)
    SAFETY_BUFFER_SECONDS: int = _int('SAFETY_BUFFER_SECONDS', 5)

    # ── Match scraping ─────────────────────────────────────────────────────
    SCRAPE_QUEUE_ID:             int = _int('SCRAPE_QUEUE_ID', 450)
    MATCH_WINDOW_DAYS:           int = _int('MATCH_WINDOW_DAYS', 14)
    IDS_PER_PUUID:               int = _int('IDS_PER_PUUID', 20)
    MAX_NEW_MATCHES_PER_PUUID:   int = _int('MAX_NEW_MATCHES_PER_PUUID', 3)
    MAX_CONSECUTIVE_TIMEOUTS:    int = _int('MAX_CONSECUTIVE_TIMEOUTS', 3)
    DIRECTORY_CANDIDATE_LIMIT:   int = _int('DIRECTORY_CANDIDATE_LIMIT', 200)
    PARTICIPANT_CANDIDATE_LIMIT: int = _int('PARTICIPANT_CANDIDATE_LIMIT', 500)

    DISABLED_REGIONS: set = set(
        r.strip().lower()
        for r in os.getenv('DISABLED_REGIONS', '').split(',')
        if r.strip()
    )

    # ── Enrichment ─────────────────────────────────────────────────────────
    TIMELINE_RETENTION_DAYS:   int = _int('TIMELINE_RETENTION_DAYS', 365)
    AUTO_ENRICH_MAX_AGE_DAYS:  int = _int('AUTO_ENRICH_MAX_AGE_DAYS', 30)
    MAX_ENRICHMENTS_PER_FETCH: int = _int('MAX_ENRICHMENTS_PER_FETCH', 3)
    ENRICH_WORKERS:            int = _int('ENRICH_WORKERS', 2)
    ENRICH_RETRY_ATTEMPTS:     int = _int('ENRICH_RETRY_ATTEMPTS', 3)
    ENRICH_RETRY_BACKOFF_MS:   int = _int('ENRICH_RETRY_BACKOFF_MS', 2000)

    # ── Aggregates ─────────────────────────────────────────────────────────
    ACCEPTED_PATCH_COUNT: int = _int('ACCEPTED_PATCH_COUNT', 3)

    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')

    @classmethod
    def validate(cls) -> None:
        if not cls.RIOT_API_KEY:
            raise ValueError("RIOT_API_KEY must be set in config/.env")

    @classmethod
    def create_directories(cls) -> None:
        cls.DB_PATH.parent.mkdir(parents=True, exist_ok=True)
        cls.LOG_DIR.mkdir(parents=True, exist_ok=True)


settings = Settings()
