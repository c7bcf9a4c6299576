"""Allow ``python -m raster_studio``."""
from __future__ import annotations

from raster_studio.cli import main


if __name__ == "__main__":  # pragma: no cover - exercised via integration test
    raise SystemExit(main())
