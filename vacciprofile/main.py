"""Entry point for serving the VacciProfile API."""

from __future__ import annotations

import logging

import uvicorn

from vacciprofile import database
from vacciprofile.config import settings


def main():
    """Create the admin tables and serve the API."""
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    conn = database.connect()
    database.create_tables(conn)
    conn.close()

    uvicorn.run(
        "vacciprofile.api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
