"""Service configuration.

Defaults come from configs/config.yaml; secrets and deployment overrides come
from the environment (a local .env file is honoured).
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv


PROJECT_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "configs" / "config.yaml"


@dataclass(frozen=True)
class AISettings:
    api_key: Optional[str] = None
    model: str = "gemini-2.5-flash"
    temperature: float = 0.7
    top_p: float = 0.95
    top_k: int = 40
    max_output_tokens: int = 8192
    timeout_seconds: float = 30.0

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


@dataclass(frozen=True)
class DatabaseSettings:
    url: str = "sqlite:///./outputs/screenings.db"


@dataclass(frozen=True)
class StorageSettings:
    api_url: str = ""
    api_key: str = ""
    timeout_seconds: float = 10.0
    memory_max_records: int = 1000

    @property
    def remote_configured(self) -> bool:
        return bool(self.api_url and self.api_key)


@dataclass(frozen=True)
class Settings:
    ai: AISettings = field(default_factory=AISettings)
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    log_level: str = "INFO"


def _read_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_settings(path: Optional[Path] = None) -> Settings:
    """Build Settings from YAML defaults plus environment overrides.

    An explicit path (argument or SCREENING_CONFIG) must exist; the bundled
    default file is optional so the package still starts when installed
    without the configs/ directory.
    """
    load_dotenv()

    explicit = path or os.getenv("SCREENING_CONFIG")
    if explicit:
        cfg_path = Path(explicit)
        if not cfg_path.exists():
            raise FileNotFoundError(f"{cfg_path} not found")
        cfg = _read_yaml(cfg_path)
    elif DEFAULT_CONFIG_PATH.exists():
        cfg = _read_yaml(DEFAULT_CONFIG_PATH)
    else:
        cfg = {}

    ai_cfg = cfg.get("ai") or {}
    db_cfg = cfg.get("database") or {}
    st_cfg = cfg.get("storage") or {}
    log_cfg = cfg.get("logging") or {}

    ai = AISettings(
        api_key=os.getenv("GEMINI_API_KEY") or None,
        model=os.getenv("GEMINI_MODEL", ai_cfg.get("model", AISettings.model)),
        temperature=float(ai_cfg.get("temperature", AISettings.temperature)),
        top_p=float(ai_cfg.get("top_p", AISettings.top_p)),
        top_k=int(ai_cfg.get("top_k", AISettings.top_k)),
        max_output_tokens=int(ai_cfg.get("max_output_tokens", AISettings.max_output_tokens)),
        timeout_seconds=float(ai_cfg.get("timeout_seconds", AISettings.timeout_seconds)),
    )
    database = DatabaseSettings(
        url=os.getenv("DATABASE_URL", db_cfg.get("url", DatabaseSettings.url)),
    )
    storage = StorageSettings(
        api_url=os.getenv("STORAGE_API_URL", st_cfg.get("api_url") or ""),
        api_key=os.getenv("STORAGE_API_KEY", ""),
        timeout_seconds=float(st_cfg.get("timeout_seconds", StorageSettings.timeout_seconds)),
        memory_max_records=int(st_cfg.get("memory_max_records", StorageSettings.memory_max_records)),
    )
    log_level = os.getenv("LOG_LEVEL", log_cfg.get("level", "INFO"))

    return Settings(ai=ai, database=database, storage=storage, log_level=str(log_level).upper())
