from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def load_env(*, env_file: str | Path | None = None, override: bool = False) -> Path | None:
    """
    Load the first `.env` file found into `os.environ`.

    Lookup order: explicit `env_file`, `$TMDB_ENV_FILE`, repo root, current directory.
    """

    repo_root = Path(__file__).resolve().parents[2]
    candidates: list[Path] = []
    if env_file:
        candidates.append(Path(env_file))
    explicit = (os.getenv("TMDB_ENV_FILE") or "").strip()
    if explicit:
        candidates.append(Path(explicit))
    candidates.extend([repo_root / ".env", Path.cwd() / ".env"])

    for path in candidates:
        if path.is_file():
            load_dotenv(dotenv_path=path, override=override)
            return path
    return None


def parse_bool(value: object, *, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    raw = str(value if value is not None else "").strip().lower()
    if not raw:
        return default
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    raise ValueError(f"Unable to parse boolean from: {value!r}")
