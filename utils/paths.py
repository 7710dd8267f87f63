from __future__ import annotations

from pathlib import Path


def get_repo_root(start: str | Path | None = None) -> Path:
    """Return the repository root by searching for a pyproject.toml upward.

    If not found, fall back to the parent of this file's parent directory.
    """
    current = Path(start) if start else Path(__file__).resolve()
    for path in [current, *current.parents]:
        candidate = path if path.is_dir() else path.parent
        if (candidate / "pyproject.toml").exists():
            return candidate
    return Path(__file__).resolve().parents[1]


def resolve_data_dir(data_dir: str | Path) -> Path:
    """Resolve a data directory, relative paths first against the cwd, then the repo root."""
    p = Path(data_dir)
    if p.exists():
        return p
    candidate = get_repo_root() / p
    if candidate.exists():
        return candidate
    raise FileNotFoundError(f"Data directory not found: {p}")
