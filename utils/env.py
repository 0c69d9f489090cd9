"""Environment helper utilities.

Loads a `.env` file from the project root so that settings such as
``BUDZ_ORDER_INTERVAL_SECONDS`` become available via ``os.getenv``, and parses
numeric settings. Uses `python-dotenv`.
"""

from __future__ import annotations

import math
import os
from pathlib import Path

from dotenv import load_dotenv

__all__ = ["load_project_dotenv", "project_dotenv_path", "get_env_float"]

PROJECT_MARKER = "pyproject.toml"
# utils/ sits directly under the project root in a checkout
_CHECKOUT_ROOT = Path(__file__).resolve().parent.parent


def _find_project_root(start: Path | None = None) -> Path:
    """Nearest directory at or above ``start`` holding a `pyproject.toml`, else the checkout root."""
    here = start or Path(__file__).resolve().parent
    return next((d for d in (here, *here.parents) if (d / PROJECT_MARKER).is_file()), _CHECKOUT_ROOT)


def project_dotenv_path() -> Path:
    return _find_project_root() / ".env"


def load_project_dotenv() -> bool:
    """Load the project-level `.env` if present. Existing variables win."""
    dotenv_path = project_dotenv_path()
    if not dotenv_path.is_file():
        return False
    load_dotenv(dotenv_path=dotenv_path, override=False)
    return True


def get_env_float(name: str, default: float) -> float:
    """Read a positive-or-zero float setting, falling back to ``default`` when unset."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return float(default)
    try:
        value = float(raw)
    except ValueError as e:
        raise ValueError(f"Environment variable {name} must be a number, got {raw!r}") from e
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"Environment variable {name} must be a non-negative number, got {raw!r}")
    return value
