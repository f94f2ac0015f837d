#!/usr/bin/env python
"""
Run script for the Flock application.

This script serves as the entry point for the application,
handling initialization and startup of services.
"""

import argparse
import asyncio
import logging

import uvicorn

from flock.config_secrets import DATABASE_URL, LOG_LEVEL
from flock.core.db import Database


async def setup_database() -> None:
    """
    Create the database tables and close the connection again.
    """
    db = Database(DATABASE_URL)
    await db.connect(create_tables=True)
    await db.disconnect()


def main(host: str = "127.0.0.1", port: int = 5000, reload: bool = True,
         workers: int = 1, create_tables: bool = False) -> None:
    """
    Main entry point for the application.

    Args:
        host: Host to bind the server to.
        port: Port to bind the server to.
        reload: Whether to reload the server on code changes.
        workers: Number of worker processes.
        create_tables: Whether to create database tables before starting.
    """
    # Set up logging
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if create_tables:
        asyncio.run(setup_database())
        logging.info("Database tables created")

    # Start the FastAPI application
    logging.info(f"Starting Flock API on {host}:{port}")
    uvicorn.run(
        "flock.main:app",
        host=host,
        port=port,
        reload=reload,
        workers=workers,
    )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run the Flock application")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind the server to")
    parser.add_argument("--port", type=int, default=5000, help="Port to bind the server to")
    parser.add_argument("--no-reload", action="store_false", dest="reload", help="Disable auto-reload")
    parser.add_argument("--workers", type=int, default=1, help="Number of worker processes")
    parser.add_argument("--create-tables", action="store_true", help="Create database tables")

    args = parser.parse_args()
    main(
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=args.workers,
        create_tables=args.create_tables
    )
