"""Application version, read from the VERSION file at the repository root."""

from pathlib import Path

_CANDIDATES = (
    # Container layout: /app/app/core/version.py -> /app/VERSION
    Path(__file__).resolve().parents[2] / "VERSION",
    # Checkout layout: backend/app/core/version.py -> VERSION
    Path(__file__).resolve().parents[3] / "VERSION",
)


def get_version() -> str:
    for candidate in _CANDIDATES:
        if candidate.is_file():
            return candidate.read_text().strip()
    return "0.0.0"


__version__ = get_version()
