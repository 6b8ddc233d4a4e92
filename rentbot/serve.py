"""Launch script for the rental quote assistant."""

from __future__ import annotations

import logging
import os

import uvicorn

logger = logging.getLogger("rentbot.launcher")


def main() -> None:
    from rentbot.main import app  # noqa: WPS433 (import position)

    port = int(os.environ.get("PORT", "8000"))
    logger.debug("Starting server on port %d", port)
    uvicorn.run(app, host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
