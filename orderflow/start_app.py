# start_app.py
"""Launch the API server."""

from __future__ import annotations

import argparse
import os

import uvicorn
from dotenv import load_dotenv

from . import config


def main(argv: list[str] | None = None) -> None:
    """Load settings then start the API."""

    parser = argparse.ArgumentParser(prog="orderflow")
    parser.add_argument("--host", default="0.0.0.0")  # nosec B104: bind for local development
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "8000")))
    args = parser.parse_args(argv)

    load_dotenv()  # load environment variables from a .env file
    config.get_settings.cache_clear()
    settings = config.get_settings()  # fail fast on invalid configuration

    uvicorn.run(
        "orderflow.main:build_app",
        factory=True,
        host=args.host,
        port=args.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
