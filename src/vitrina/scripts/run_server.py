"""
Script para levantar la API HTTP.

Uso:
    python -m vitrina.scripts.run_server
    python -m vitrina.scripts.run_server --port 8080
"""

import argparse
import logging
import sys

import structlog
from aiohttp import web

from vitrina.api import create_app
from vitrina.config import get_settings
from vitrina.context import build_context


def configure_logging(level: str) -> None:
    """Configura structlog sobre el logging estándar."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


logger = structlog.get_logger()


def main():
    """Entry point del script."""
    settings = get_settings()

    parser = argparse.ArgumentParser(description="API de vitrina")
    parser.add_argument("--host", default=settings.host, help="Host de escucha")
    parser.add_argument("--port", type=int, default=settings.port, help="Puerto HTTP")
    args = parser.parse_args()

    configure_logging(settings.log_level)

    try:
        context = build_context(settings)
    except ValueError as e:
        logger.error("Configuración inválida", error=str(e))
        sys.exit(1)

    app = create_app(context)
    logger.info("Servidor iniciando", host=args.host, port=args.port)
    logger.info(f"Health check: http://localhost:{args.port}/api/health")
    web.run_app(app, host=args.host, port=args.port, print=None)


if __name__ == "__main__":
    main()
