"""Observability module.

Provides:
- Run ID context management for log correlation
- Structured logging configuration

Usage:
    from naturedl.observability import configure_logging, run_id_context

    configure_logging(level="INFO")
    with run_id_context():
        ...
"""

from naturedl.observability.context import (
    get_run_id,
    run_id_context,
)
from naturedl.observability.logging import (
    configure_logging,
    add_run_id_processor,
)

__all__ = [
    # Context
    "get_run_id",
    "run_id_context",
    # Logging
    "configure_logging",
    "add_run_id_processor",
]
