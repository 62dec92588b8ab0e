"""
TOPSIS Ranker

Implements TOPSIS (Technique for Order of Preference by Similarity to Ideal Solution)
for multi-criteria ranking of drivers against weighted leaf criteria.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from driver_ranking.config import settings

from .constants import DiagnosticCode, DiagnosticKind, Polarity
from .exceptions import NotFoundError, ValidationError
from .hierarchy import CriteriaHierarchy
from .schemas import (
    AlternativeSchema,
    DiagnosticSchema,
    TOPSISReportSchema,
    TOPSISResultSchema,
)

logger = logging.getLogger(__name__)

TiebreakKey = Callable[[AlternativeSchema], Optional[float]]


class TOPSISRanker:
    """
    Implements TOPSIS algorithm for multi-criteria decision making.

    Steps:
    1. Build decision matrix from alternative data
    2. Normalize matrix (vector normalization)
    3. Apply criteria weights
    4. Calculate ideal solutions (A+ and A-)
    5. Calculate Euclidean distances to ideal solutions
    6. Calculate closeness coefficients (Ci)
    7. Rank alternatives by Ci (descending, stable)

    Column order is the hierarchy's leaf declaration order. Criterion
    polarity comes from the hierarchy; a column with unknown polarity is an
    error, never a default.
    """

    def __init__(
        self,
        hierarchy: CriteriaHierarchy,
        weight_sum_tolerance: Optional[float] = None,
    ):
        """
        Initialize TOPSIS ranker.

        Args:
            hierarchy: Criteria tree providing leaf order and polarity
            weight_sum_tolerance: Max |sum(weights) - 1| accepted without
                renormalizing (default from settings)
        """
        self.hierarchy = hierarchy
        self.weight_sum_tolerance = (
            weight_sum_tolerance
            if weight_sum_tolerance is not None
            else settings.weight_sum_tolerance
        )

    def resolve_criteria(
        self,
        alternatives: Sequence[AlternativeSchema],
        weights: Dict[str, float],
        criteria: Optional[Sequence[str]] = None,
    ) -> List[str]:
        """
        Decide the criterion columns of the decision matrix.

        Columns are the given criteria, or every criterion the alternatives
        provide values for, in leaf declaration order.

        Raises:
            NotFoundError: a referenced criterion is not in the hierarchy
            ValidationError: a column has unknown polarity, or the weight map
                names a criterion outside the columns
        """
        if criteria is None:
            requested = {cid for alternative in alternatives for cid in alternative.values}
        else:
            requested = set(criteria)

        for criterion_id in sorted(requested | set(weights)):
            if criterion_id not in self.hierarchy:
                raise NotFoundError(
                    f"Unknown criterion '{criterion_id}'",
                    criterion_id=criterion_id,
                )

        for criterion_id in sorted(requested):
            if self.hierarchy.benefit_polarity(criterion_id) == Polarity.UNKNOWN:
                raise ValidationError(
                    f"Criterion '{criterion_id}' has no benefit/cost polarity "
                    "(not a leaf or not configured)",
                    criterion_id=criterion_id,
                )

        extra = sorted(set(weights) - requested)
        if extra:
            raise ValidationError(
                f"Weights given for criteria without values: {extra}",
                criterion_id=extra[0],
                details={"criteria": extra},
            )

        return [cid for cid in self.hierarchy.leaf_ids() if cid in requested]

    def build_decision_matrix(
        self,
        alternatives: Sequence[AlternativeSchema],
        criteria: List[str],
    ) -> Tuple[np.ndarray, List[str]]:
        """
        Build the decision matrix from alternative data.

        Matrix structure (m x n):
        - m = number of alternatives
        - n = number of criteria columns

        Returns:
            Tuple of (decision_matrix, alternative_ids)

        Raises:
            ValidationError: an alternative lacks a value or has a non-finite one
        """
        m = len(alternatives)
        n = len(criteria)

        matrix = np.zeros((m, n))
        alternative_ids = []

        for i, alternative in enumerate(alternatives):
            alternative_ids.append(alternative.alternative_id)
            for j, criterion_id in enumerate(criteria):
                if criterion_id not in alternative.values:
                    raise ValidationError(
                        f"Alternative '{alternative.alternative_id}' has no value "
                        f"for criterion '{criterion_id}'",
                        criterion_id=criterion_id,
                        details={"alternative_id": alternative.alternative_id},
                    )
                value = alternative.values[criterion_id]
                if not np.isfinite(value):
                    raise ValidationError(
                        f"Alternative '{alternative.alternative_id}' has a non-finite "
                        f"value for criterion '{criterion_id}'",
                        criterion_id=criterion_id,
                        details={"alternative_id": alternative.alternative_id},
                    )
                matrix[i, j] = value

        logger.debug(f"Decision matrix shape: {matrix.shape}")
        logger.debug(f"Decision matrix:\n{matrix}")

        return matrix, alternative_ids

    def normalize_matrix(self, matrix: np.ndarray) -> Tuple[np.ndarray, List[int]]:
        """
        Normalize the decision matrix using vector normalization.

        Formula: v_ij = x_ij / sqrt(sum(x_ij^2)) for each column j.
        A column whose norm is 0 normalizes to all zeros.

        Args:
            matrix: Decision matrix (m x n)

        Returns:
            Tuple of (normalized matrix, indices of zero-norm columns)
        """
        column_norms = np.sqrt(np.sum(matrix ** 2, axis=0))

        zero_columns = [int(j) for j in np.flatnonzero(column_norms == 0)]
        safe_norms = np.where(column_norms == 0, 1.0, column_norms)

        normalized = matrix / safe_norms
        normalized[:, zero_columns] = 0.0

        logger.debug(f"Normalized matrix:\n{normalized}")

        return normalized, zero_columns

    def prepare_weights(
        self,
        weights: Dict[str, float],
        criteria: List[str],
        diagnostics: List[DiagnosticSchema],
    ) -> np.ndarray:
        """
        Weight vector aligned with the criteria columns.

        A column without a weight gets 0; weights not summing to 1 within
        tolerance are renormalized. Both events are recorded in diagnostics.

        Raises:
            ValidationError: negative or non-finite weights, or all weights 0
        """
        for criterion_id, weight in weights.items():
            if not np.isfinite(weight) or weight < 0:
                raise ValidationError(
                    f"Weight for '{criterion_id}' must be a non-negative number, got {weight}",
                    criterion_id=criterion_id,
                )

        vector = np.zeros(len(criteria))
        for j, criterion_id in enumerate(criteria):
            if criterion_id in weights:
                vector[j] = weights[criterion_id]
            else:
                message = f"No weight for criterion '{criterion_id}'; it is excluded (weight 0)"
                logger.warning(message)
                diagnostics.append(DiagnosticSchema(
                    kind=DiagnosticKind.DEGENERATE_INPUT_WARNING,
                    code=DiagnosticCode.MISSING_WEIGHT,
                    message=message,
                    criterion_id=criterion_id,
                ))

        total = float(vector.sum())
        if total == 0:
            raise ValidationError("Criteria weights sum to zero")

        if abs(total - 1.0) > self.weight_sum_tolerance:
            message = f"Criteria weights sum to {total:.4f}; renormalized to 1"
            logger.warning(message)
            diagnostics.append(DiagnosticSchema(
                kind=DiagnosticKind.DEGENERATE_INPUT_WARNING,
                code=DiagnosticCode.WEIGHTS_RENORMALIZED,
                message=message,
            ))
            vector = vector / total

        logger.debug(f"Weight vector: {vector}")

        return vector

    def apply_weights(
        self,
        normalized_matrix: np.ndarray,
        weight_vector: np.ndarray
    ) -> np.ndarray:
        """
        Apply criteria weights to normalized matrix.

        Formula: r_ij = w_j * v_ij
        """
        weighted = normalized_matrix * weight_vector

        logger.debug(f"Weighted matrix:\n{weighted}")

        return weighted

    def calculate_ideal_solutions(
        self,
        weighted_matrix: np.ndarray,
        criteria: List[str],
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Calculate ideal positive (A+) and ideal negative (A-) solutions.

        For benefit criteria: A+ = max, A- = min
        For cost criteria: A+ = min, A- = max

        Args:
            weighted_matrix: Weighted normalized matrix (m x n)
            criteria: Column criterion ids

        Returns:
            Tuple of (A_positive, A_negative), arrays of length n
        """
        n_criteria = weighted_matrix.shape[1]
        A_positive = np.zeros(n_criteria)
        A_negative = np.zeros(n_criteria)

        for j, criterion in enumerate(criteria):
            column = weighted_matrix[:, j]
            polarity = self.hierarchy.benefit_polarity(criterion)

            if polarity == Polarity.BENEFIT:
                A_positive[j] = np.max(column)
                A_negative[j] = np.min(column)
            elif polarity == Polarity.COST:
                A_positive[j] = np.min(column)
                A_negative[j] = np.max(column)
            else:
                raise ValidationError(
                    f"Criterion '{criterion}' has no benefit/cost polarity",
                    criterion_id=criterion,
                )

        logger.debug(f"A+ (ideal positive): {A_positive}")
        logger.debug(f"A- (ideal negative): {A_negative}")

        return A_positive, A_negative

    def calculate_distances(
        self,
        weighted_matrix: np.ndarray,
        A_positive: np.ndarray,
        A_negative: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Calculate Euclidean distances to ideal solutions.

        Formula:
        - d+ = sqrt(sum((r_ij - A+_j)^2))
        - d- = sqrt(sum((r_ij - A-_j)^2))

        Returns:
            Tuple of (distances_positive, distances_negative), length m
        """
        diff_positive = weighted_matrix - A_positive
        diff_negative = weighted_matrix - A_negative

        distances_positive = np.sqrt(np.sum(diff_positive ** 2, axis=1))
        distances_negative = np.sqrt(np.sum(diff_negative ** 2, axis=1))

        logger.debug(f"Distances to A+: {distances_positive}")
        logger.debug(f"Distances to A-: {distances_negative}")

        return distances_positive, distances_negative

    def calculate_similarity_scores(
        self,
        distances_positive: np.ndarray,
        distances_negative: np.ndarray
    ) -> np.ndarray:
        """
        Calculate closeness coefficients (relative closeness to ideal solution).

        Formula: C_i = d- / (d+ + d-), and 0 when d+ + d- = 0.

        Values range from 0 to 1:
        - C_i = 1: Alternative is at ideal positive solution
        - C_i = 0: Alternative is at ideal negative solution
        """
        total_distance = distances_positive + distances_negative
        safe_total = np.where(total_distance == 0, 1.0, total_distance)

        scores = np.where(total_distance == 0, 0.0, distances_negative / safe_total)

        logger.debug(f"Closeness coefficients (C_i): {scores}")

        return scores

    def calculate_group_scores(
        self,
        weighted_matrix: np.ndarray,
        A_positive: np.ndarray,
        A_negative: np.ndarray,
        criteria: List[str],
    ) -> Dict[str, np.ndarray]:
        """
        Closeness coefficient per root criterion, over the leaf columns
        descending from it, measured against the shared ideal solutions.
        """
        group_scores = {}
        for root in self.hierarchy.roots():
            leaves = set(self.hierarchy.leaves_under(root.id))
            columns = [j for j, criterion_id in enumerate(criteria) if criterion_id in leaves]
            if not columns:
                continue
            d_pos, d_neg = self.calculate_distances(
                weighted_matrix[:, columns], A_positive[columns], A_negative[columns]
            )
            group_scores[root.id] = self.calculate_similarity_scores(d_pos, d_neg)
        return group_scores

    def order(
        self,
        alternatives: Sequence[AlternativeSchema],
        scores: np.ndarray,
        tiebreak_key: Optional[TiebreakKey] = None,
    ) -> List[int]:
        """
        Row indices sorted by descending closeness coefficient.

        Ties are broken by tiebreak_key descending (None sorts last), then by
        input order.
        """
        def sort_key(i: int):
            if tiebreak_key is None:
                return (-scores[i],)
            secondary = tiebreak_key(alternatives[i])
            if secondary is None:
                return (-scores[i], 1, 0.0)
            return (-scores[i], 0, -secondary)

        return sorted(range(len(alternatives)), key=sort_key)

    def evaluate(
        self,
        alternatives: Sequence[AlternativeSchema],
        weights: Dict[str, float],
        criteria: Optional[Sequence[str]] = None,
        tiebreak_key: Optional[TiebreakKey] = None,
    ) -> TOPSISReportSchema:
        """
        Complete TOPSIS ranking process with diagnostics.

        Args:
            alternatives: Alternatives with raw criterion values
            weights: Criterion id -> weight (typically AHP global weights)
            criteria: Restrict columns to these criteria (default: all
                criteria the alternatives provide)
            tiebreak_key: Secondary sort key for equal closeness, descending

        Returns:
            TOPSISReportSchema with results sorted by rank, columns used,
            the weight vector actually applied and diagnostics
        """
        if not alternatives:
            logger.info("TOPSIS called with no alternatives; nothing to rank")
            return TOPSISReportSchema(results=[], criteria=[], weights_used={})

        logger.info(f"Starting TOPSIS ranking for {len(alternatives)} alternatives")

        diagnostics: List[DiagnosticSchema] = []

        criteria = self.resolve_criteria(alternatives, weights, criteria)

        # Step 1: Build decision matrix
        decision_matrix, alternative_ids = self.build_decision_matrix(alternatives, criteria)

        # Step 2: Normalize matrix
        normalized_matrix, zero_columns = self.normalize_matrix(decision_matrix)
        for j in zero_columns:
            message = f"Criterion '{criteria[j]}' is zero for every alternative; normalized to 0"
            logger.warning(message)
            diagnostics.append(DiagnosticSchema(
                kind=DiagnosticKind.DEGENERATE_INPUT_WARNING,
                code=DiagnosticCode.ZERO_NORM_COLUMN,
                message=message,
                criterion_id=criteria[j],
            ))

        # Step 3: Apply weights
        weight_vector = self.prepare_weights(weights, criteria, diagnostics)
        weighted_matrix = self.apply_weights(normalized_matrix, weight_vector)

        # Step 4: Calculate ideal solutions
        A_positive, A_negative = self.calculate_ideal_solutions(weighted_matrix, criteria)

        # Step 5: Calculate distances
        distances_positive, distances_negative = self.calculate_distances(
            weighted_matrix, A_positive, A_negative
        )

        # Step 6: Calculate closeness coefficients
        scores = self.calculate_similarity_scores(distances_positive, distances_negative)
        for i in np.flatnonzero(distances_positive + distances_negative == 0):
            message = (
                f"Alternative '{alternative_ids[i]}' is at both ideal solutions; "
                "closeness coefficient set to 0"
            )
            logger.warning(message)
            diagnostics.append(DiagnosticSchema(
                kind=DiagnosticKind.DEGENERATE_INPUT_WARNING,
                code=DiagnosticCode.ZERO_DISTANCE_TIE,
                message=message,
                alternative_id=alternative_ids[i],
            ))

        group_scores = self.calculate_group_scores(
            weighted_matrix, A_positive, A_negative, criteria
        )

        # Step 7: Sort and assign ranks
        ideal_positive = dict(zip(criteria, A_positive.tolist()))
        ideal_negative = dict(zip(criteria, A_negative.tolist()))

        results = []
        for rank, i in enumerate(self.order(alternatives, scores, tiebreak_key), start=1):
            results.append(TOPSISResultSchema(
                alternative_id=alternative_ids[i],
                rank=rank,
                closeness_coefficient=float(scores[i]),
                distance_to_positive=float(distances_positive[i]),
                distance_to_negative=float(distances_negative[i]),
                raw_performance=dict(zip(criteria, decision_matrix[i].tolist())),
                normalized_performance=dict(zip(criteria, normalized_matrix[i].tolist())),
                weighted_normalized_performance=dict(zip(criteria, weighted_matrix[i].tolist())),
                ideal_positive=ideal_positive,
                ideal_negative=ideal_negative,
                group_scores={root_id: float(values[i]) for root_id, values in group_scores.items()},
            ))

        logger.info(
            f"TOPSIS ranking complete. Top score: {results[0].closeness_coefficient:.4f}, "
            f"Lowest score: {results[-1].closeness_coefficient:.4f}"
        )

        return TOPSISReportSchema(
            results=results,
            criteria=criteria,
            weights_used=dict(zip(criteria, weight_vector.tolist())),
            diagnostics=diagnostics,
        )

    def rank(
        self,
        alternatives: Sequence[AlternativeSchema],
        weights: Dict[str, float],
        criteria: Optional[Sequence[str]] = None,
        tiebreak_key: Optional[TiebreakKey] = None,
    ) -> List[TOPSISResultSchema]:
        """Ranked TOPSIS results (rank 1 first); see evaluate()."""
        return self.evaluate(alternatives, weights, criteria, tiebreak_key).results
