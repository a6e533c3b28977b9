"""
Configuration: environment loading plus the sizing constants and palette
owned by the layout engine and the introspector.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Tuple

from dotenv import load_dotenv

_PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Header colors handed out round-robin to imported tables.
PALETTE: Tuple[str, ...] = (
    "#DC3C3C",  # red
    "#3CB43C",  # green
    "#5050B4",  # blue
    "#C864C8",  # purple
    "#FF9632",  # orange
    "#6495ED",  # cornflower blue
    "#B47850",  # brown
    "#64B4B4",  # teal
)

NEW_TABLE_COLOR = "#6495ED"

DEFAULT_PORTS: Dict[str, int] = {
    "MySQL": 3306,
    "PostgreSQL": 5432,
    "Oracle": 1521,
    "Tibero": 8629,
}


def load_env() -> None:
    """
    Load variables from .env in the working directory or the project root.
    Existing os.environ values win (allows CLI/shell overrides).
    """
    for base in (Path.cwd(), _PROJECT_ROOT):
        env_path = base / ".env"
        if env_path.exists():
            load_dotenv(env_path, override=False)
            return


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring non-integer %s=%r", name, raw)
        return default


@dataclass(frozen=True)
class Settings:
    api_auth_token: str | None = None
    connect_timeout: int = 10
    log_level: str = "INFO"
    import_workers: int = 2

    @classmethod
    def from_env(cls) -> "Settings":
        token = os.environ.get("API_AUTH_TOKEN", "").strip() or None
        return cls(
            api_auth_token=token,
            connect_timeout=_int_env("ERDFORGE_CONNECT_TIMEOUT", 10),
            log_level=os.environ.get("ERDFORGE_LOG_LEVEL", "INFO").strip().upper() or "INFO",
            import_workers=max(1, _int_env("ERDFORGE_IMPORT_WORKERS", 2)),
        )


@dataclass(frozen=True)
class LayoutConfig:
    """Sizing constants for footprint estimation and the placement scan."""

    char_width: float = 7.0
    width_padding: float = 140.0
    min_width: float = 320.0
    max_width: float = 900.0
    type_padding_chars: int = 4
    base_height: float = 45.0
    row_height: float = 22.0
    margin: float = 20.0
    start_x: float = 50.0
    start_y: float = 50.0
    step_x: float = 50.0
    step_y: float = 50.0
    max_x: float = 3000.0
    max_y: float = 5000.0
    max_iterations: int = 1000
    default_width: float = 320.0
    default_height: float = 100.0
    palette: Tuple[str, ...] = PALETTE


DEFAULT_LAYOUT = LayoutConfig()
