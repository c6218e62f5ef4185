# kalkulator/__main__.py
"""Run the API with uvicorn: ``python -m kalkulator`` or the ``kalkulator`` script."""
from __future__ import annotations

import uvicorn

from kalkulator.core.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "kalkulator.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.app_env == "local",
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
