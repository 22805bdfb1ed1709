"""Afya Link — Entry Point

Loads configuration (exits if Supabase credentials are missing),
then serves the FastAPI gateway with uvicorn.
"""
import sys

import structlog

structlog.configure(
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(0),
)

import uvicorn
from afya.core.config import ConfigError, get_config

logger = structlog.get_logger()


def main():
    try:
        config = get_config()
    except ConfigError as e:
        logger.error("config_invalid", error=str(e))
        sys.exit(1)
    uvicorn.run(
        "afya.gateway:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
