"""Utility modules."""

from .context import (
    get_correlation_id,
    set_correlation_id,
    generate_correlation_id,
    get_evaluation_id,
    set_evaluation_id,
    get_evaluator_name,
    set_evaluator_name,
    clear_all_context,
    get_request_context,
)

__all__ = [
    "get_correlation_id",
    "set_correlation_id",
    "generate_correlation_id",
    "get_evaluation_id",
    "set_evaluation_id",
    "get_evaluator_name",
    "set_evaluator_name",
    "clear_all_context",
    "get_request_context",
]
