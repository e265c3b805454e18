"""Runtime settings read from the environment.

The CLI loads ``.env`` (python-dotenv) before calling :meth:`Settings.from_env`;
library callers may build a ``Settings`` directly.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from resume_craft.paths import LOG_DIR, USAGE_STORE

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_COMPILE_URL = "https://latexonline.cc/compile"
DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


class Settings(BaseModel):
    """Process-wide configuration."""
    log_level: str = "INFO"
    log_dir: Path = LOG_DIR
    llm_model: str = DEFAULT_MODEL
    compile_url: str = DEFAULT_COMPILE_URL
    compile_timeout: float = 60.0
    max_concurrent_calls: int = Field(default=5, ge=1)
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    usage_store_path: Optional[Path] = USAGE_STORE
    # USD per 1K tokens
    input_price_per_1k: float = 0.00015
    output_price_per_1k: float = 0.0006
    model_config = ConfigDict(extra="ignore")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        store = os.getenv("USAGE_STORE_PATH")
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_dir=Path(os.getenv("LOG_DIR", str(LOG_DIR))),
            llm_model=os.getenv("LLM_MODEL", os.getenv("RESUME_CRAFT_LLM", DEFAULT_MODEL)),
            compile_url=os.getenv("LATEX_COMPILE_URL", DEFAULT_COMPILE_URL),
            compile_timeout=_env_float("LATEX_COMPILE_TIMEOUT", 60.0),
            max_concurrent_calls=max(1, _env_int("MAX_CONCURRENT_CALLS", 5)),
            max_upload_bytes=_env_int("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
            usage_store_path=Path(store) if store else USAGE_STORE,
            input_price_per_1k=_env_float("LLM_INPUT_PRICE_PER_1K", 0.00015),
            output_price_per_1k=_env_float("LLM_OUTPUT_PRICE_PER_1K", 0.0006),
        )
