"""
DREAMCUT brief engine configuration.

All values are read from the environment once at import time.
"""

import os


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


class DreamcutConfig:
    """DREAMCUT pipeline configuration"""
    SCHEMA_VERSION = "3.0-rich"

    # Analysis collaborators (step1..step4 analyzer service)
    ANALYZER_URL = os.getenv("DREAMCUT_ANALYZER_URL", "http://localhost:3000").rstrip("/")
    ANALYZER_TIMEOUT = _env_float("DREAMCUT_ANALYZER_TIMEOUT", 120.0)

    # Confidence / feasibility boosting policy
    CONFIDENCE_FLOOR = _env_float("DREAMCUT_CONFIDENCE_FLOOR", 0.75)
    FEASIBILITY_FLOOR = _env_float("DREAMCUT_FEASIBILITY_FLOOR", 0.85)
    QUALITY_FLOOR = _env_float("DREAMCUT_QUALITY_FLOOR", 8.0)
    DEFAULT_CONFIDENCE = _env_float("DREAMCUT_DEFAULT_CONFIDENCE", 0.13)
    DEFAULT_FEASIBILITY = _env_float("DREAMCUT_DEFAULT_FEASIBILITY", 0.34)
    DEFAULT_QUALITY = _env_float("DREAMCUT_DEFAULT_QUALITY", 6.0)

    # Persistence
    PERSIST_BRIEFS = os.getenv("DREAMCUT_PERSIST_BRIEFS", "true").lower() == "true"
    SUPABASE_URL = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", os.getenv("SUPABASE_KEY", ""))
    BRIEFS_TABLE = os.getenv("DREAMCUT_BRIEFS_TABLE", "dreamcut_queries")
