"""
Context management utilities.

Provides context variables that tag every log line emitted while a ranking
or weighting run is in progress (correlation id, evaluation id, evaluator).
"""

import logging
from contextvars import ContextVar
from typing import Optional
from uuid import uuid4

from driver_ranking.config import CONTEXT_KEYS

logger = logging.getLogger(__name__)

correlation_id_var: ContextVar[Optional[str]] = ContextVar(
    'correlation_id',
    default=None
)

# Identifier of one AHP evaluation (one evaluator filling all comparison matrices)
evaluation_id_var: ContextVar[Optional[str]] = ContextVar(
    'evaluation_id',
    default=None
)

evaluator_name_var: ContextVar[Optional[str]] = ContextVar(
    'evaluator_name',
    default=None
)


def get_correlation_id() -> Optional[str]:
    """
    Get the current correlation ID from context.

    Returns:
        Current correlation ID or None if not set
    """
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """
    Set the correlation ID in context.

    Args:
        correlation_id: Correlation ID to set
    """
    if not correlation_id:
        logger.warning("Attempted to set empty correlation_id")
        return

    correlation_id_var.set(correlation_id)
    logger.debug(f"Correlation ID set: {correlation_id}")


def generate_correlation_id() -> str:
    """
    Generate a new correlation ID and set it in context.

    Returns:
        Generated correlation ID (UUID4)
    """
    correlation_id = str(uuid4())
    set_correlation_id(correlation_id)
    return correlation_id


def get_evaluation_id() -> Optional[str]:
    return evaluation_id_var.get()


def set_evaluation_id(evaluation_id: str) -> None:
    evaluation_id_var.set(evaluation_id)


def get_evaluator_name() -> Optional[str]:
    return evaluator_name_var.get()


def set_evaluator_name(evaluator_name: str) -> None:
    evaluator_name_var.set(evaluator_name)


def clear_all_context() -> None:
    """Clear all context variables."""
    correlation_id_var.set(None)
    evaluation_id_var.set(None)
    evaluator_name_var.set(None)


def get_request_context() -> dict:
    """
    Get the context as a dictionary, skipping unset values.

    Returns:
        Dictionary keyed by CONTEXT_KEYS
    """
    values = (get_correlation_id(), get_evaluation_id(), get_evaluator_name())
    return {key: value for key, value in zip(CONTEXT_KEYS, values) if value}
