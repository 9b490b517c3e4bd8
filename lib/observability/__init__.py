"""
Observability module: structured logging and run IDs.

Usage:
    from lib.observability import get_logger, RunContext

    logger = get_logger(__name__)
    logger.info("Evaluating document", extra={"path": "q1.yaml"})

    with RunContext() as ctx:
        logger.info("Run started")  # carries ctx.run_id
"""

from .context import RunContext, generate_run_id, get_run_id, set_run_id
from .logging import HumanFormatter, JSONFormatter, configure_logging, get_logger

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "JSONFormatter",
    "HumanFormatter",
    # Context
    "RunContext",
    "generate_run_id",
    "get_run_id",
    "set_run_id",
]
