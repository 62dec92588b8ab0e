"""
Group decision helpers: combining several evaluators' AHP outputs.
"""

import logging
from typing import Dict, List, Sequence

import numpy as np

from .exceptions import ValidationError
from .schemas import ComparisonMatrix

logger = logging.getLogger(__name__)


def average_global_weights(
    evaluations: Sequence[Dict[str, float]],
    leaf_ids: List[str],
) -> Dict[str, float]:
    """
    Average several evaluators' global weight maps.

    For each leaf, the mean is taken over the evaluations that give it a
    positive weight (an evaluation that never weighted a leaf does not pull
    its average down). The result is renormalized to sum to 1; leaves no
    evaluation weighted are left out.

    Args:
        evaluations: One global weight map per evaluator
        leaf_ids: Leaf criteria to aggregate, in output order

    Returns:
        Leaf id -> averaged weight, summing to 1

    Raises:
        ValidationError: no evaluations, or none of them weights any leaf
    """
    if not evaluations:
        raise ValidationError("At least one evaluation is required to average weights")

    averages: Dict[str, float] = {}
    for leaf_id in leaf_ids:
        weights = [
            evaluation[leaf_id]
            for evaluation in evaluations
            if evaluation.get(leaf_id, 0) > 0
        ]
        if weights:
            averages[leaf_id] = sum(weights) / len(weights)

    total = sum(averages.values())
    if total == 0:
        raise ValidationError("No evaluation assigns a positive weight to any leaf criterion")

    logger.info(f"Averaged global weights over {len(evaluations)} evaluation(s)")

    return {leaf_id: weight / total for leaf_id, weight in averages.items()}


def aggregate_matrices(matrices: Sequence[ComparisonMatrix]) -> ComparisonMatrix:
    """
    Aggregate individual judgments by the element-wise geometric mean.

    The geometric mean of reciprocal matrices is itself reciprocal, so the
    result can be solved like any single evaluator's matrix.

    Raises:
        ValidationError: no matrices, size mismatch, or unjudged pairs
    """
    if not matrices:
        raise ValidationError("At least one comparison matrix is required")

    arrays = [matrix.to_array() for matrix in matrices]
    shapes = {array.shape for array in arrays}
    if len(shapes) != 1:
        raise ValidationError(f"Comparison matrices differ in size: {sorted(shapes)}")

    stacked = np.stack(arrays)
    aggregated = np.exp(np.log(stacked).mean(axis=0))

    logger.debug(f"Aggregated {len(arrays)} matrices:\n{aggregated}")

    return ComparisonMatrix.model_validate(aggregated)
