"""
AHP Calculator

Implements the Analytic Hierarchy Process (AHP) for deriving criteria weights
from pairwise comparison matrices, per comparison group and across the whole
criteria hierarchy.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from driver_ranking.config import settings

from .constants import (
    DiagnosticCode,
    DiagnosticKind,
    MAX_MATRIX_SIZE,
    RANDOM_INDEX,
    ROOT_GROUP,
)
from .exceptions import ValidationError
from .hierarchy import CriteriaHierarchy
from .schemas import (
    AHPLevelResultSchema,
    ComparisonGroupSchema,
    ComparisonMatrix,
    DiagnosticSchema,
    HierarchicalAHPResultSchema,
    HierarchyPayloadSchema,
)

logger = logging.getLogger(__name__)

MatrixLike = Union[ComparisonMatrix, np.ndarray, Sequence[Sequence[Optional[float]]]]


class AHPCalculator:
    """
    Implements the Analytic Hierarchy Process (AHP) for criteria weighting.

    Based on Thomas Saaty's approximate method:
    1. Normalize each column of the comparison matrix by its sum
    2. Weight of a criterion = mean of its row in the normalized matrix
    3. Check consistency: lambda_max from A.w, CI = (lambda_max - n) / (n - 1),
       CR = CI / RI(n), consistent if CR < threshold

    The principal eigenvector is deliberately not used: results must match the
    column-averaging method exactly.
    """

    def __init__(
        self,
        hierarchy: Optional[CriteriaHierarchy] = None,
        consistency_threshold: Optional[float] = None,
        reciprocal_tolerance: Optional[float] = None,
    ):
        """
        Initialize AHP calculator.

        Args:
            hierarchy: Criteria tree; required for solve_hierarchy only
            consistency_threshold: CR threshold (default from settings)
            reciprocal_tolerance: Relative tolerance for a[i][j] * a[j][i] == 1
        """
        self.hierarchy = hierarchy
        self.consistency_threshold = (
            consistency_threshold
            if consistency_threshold is not None
            else settings.consistency_threshold
        )
        self.reciprocal_tolerance = (
            reciprocal_tolerance
            if reciprocal_tolerance is not None
            else settings.reciprocal_tolerance
        )

    # ------------------------------------------------------------------
    # Single matrix
    # ------------------------------------------------------------------

    def build_comparison_matrix(
        self,
        ids: List[str],
        judgments: Dict[Tuple[str, str], float],
    ) -> np.ndarray:
        """
        Build a dense comparison matrix from named pairwise judgments.

        Args:
            ids: Ordered criterion ids
            judgments: {(a, b): value}, one entry per pair, Saaty scale

        Returns:
            n x n matrix A where A[i,j] represents the importance of
            criterion i relative to criterion j
        """
        matrix = self.validate_matrix(ComparisonMatrix.from_judgments(ids, judgments))
        logger.debug(f"Comparison matrix for {ids}:\n{matrix}")
        return matrix

    def validate_matrix(
        self,
        matrix: MatrixLike,
        group: str = ROOT_GROUP,
    ) -> np.ndarray:
        """
        Check a comparison matrix and return it as a dense array.

        Raises:
            ValidationError: non-square, too large, unjudged pairs, diagonal
                not 1, or a pair whose product is not 1
        """
        if not isinstance(matrix, ComparisonMatrix):
            try:
                matrix = ComparisonMatrix.model_validate(matrix)
            except ValueError as e:
                raise ValidationError(
                    f"Invalid comparison matrix for '{group}': {e}",
                    criterion_id=group,
                ) from e

        n = matrix.size
        if not matrix.is_square:
            raise ValidationError(
                f"Comparison matrix for '{group}' is not square",
                criterion_id=group,
            )
        if n > MAX_MATRIX_SIZE:
            raise ValidationError(
                f"Comparison matrix for '{group}' has size {n}; "
                f"at most {MAX_MATRIX_SIZE} criteria can be compared",
                criterion_id=group,
            )

        missing = matrix.missing_pairs()
        if missing:
            raise ValidationError(
                f"Comparison matrix for '{group}' has {len(missing)} unjudged pair(s)",
                criterion_id=group,
                details={"missing_pairs": missing},
            )

        array = matrix.to_array()

        if not np.allclose(np.diag(array), 1.0):
            raise ValidationError(
                f"Diagonal of the comparison matrix for '{group}' must be 1",
                criterion_id=group,
            )

        products = array * array.T
        if not np.allclose(products, 1.0, rtol=0, atol=self.reciprocal_tolerance):
            i, j = np.unravel_index(np.argmax(np.abs(products - 1.0)), products.shape)
            raise ValidationError(
                f"Comparison matrix for '{group}' is not reciprocal at ({i}, {j}): "
                f"{array[i, j]} * {array[j, i]} != 1",
                criterion_id=group,
                details={"cell": [int(i), int(j)]},
            )

        return array

    def calculate_weights(
        self,
        matrix: np.ndarray
    ) -> np.ndarray:
        """
        Calculate criteria weights using column averaging method.

        Method:
        1. Normalize each column (divide by column sum)
        2. Average across rows to get weights

        Args:
            matrix: Pairwise comparison matrix

        Returns:
            Array of weights (length = n_criteria)
        """
        column_sums = matrix.sum(axis=0)

        if np.any(column_sums == 0):
            raise ValidationError("Comparison matrix has a column summing to zero")

        normalized_matrix = matrix / column_sums

        weights = normalized_matrix.mean(axis=1)

        logger.debug(f"Calculated weights: {weights}")

        return weights

    def check_consistency(
        self,
        matrix: np.ndarray,
        weights: np.ndarray
    ) -> Tuple[float, float, float, bool]:
        """
        Check consistency of the pairwise comparison matrix.

        Consistency Ratio (CR) = CI / RI

        where:
        - CI (Consistency Index) = (lambda_max - n) / (n - 1)
        - RI (Random Index) = value from lookup table
        - lambda_max = mean of (A.w)_i / w_i over non-zero weights

        CR is 0 when RI is 0 (n <= 2).

        Args:
            matrix: Pairwise comparison matrix
            weights: Calculated weights

        Returns:
            Tuple of (lambda_max, CI, CR, is_consistent)
        """
        n = len(weights)
        if n <= 1:
            return float(n), 0.0, 0.0, True

        weighted_sum = matrix @ weights
        nonzero = weights != 0
        if np.any(nonzero):
            lambda_max = float((weighted_sum[nonzero] / weights[nonzero]).mean())
        else:
            lambda_max = 0.0

        ci = (lambda_max - n) / (n - 1)

        ri = RANDOM_INDEX[n]
        cr = ci / ri if ri > 0 else 0.0
        # Rounding can leave a perfectly consistent matrix a hair below n
        cr = max(cr, 0.0)

        is_consistent = cr < self.consistency_threshold

        logger.debug(
            f"Consistency check: lambda_max={lambda_max:.4f}, "
            f"CI={ci:.4f}, RI={ri:.2f}, CR={cr:.4f}, "
            f"consistent={is_consistent}"
        )

        return lambda_max, float(ci), float(cr), bool(is_consistent)

    def solve_matrix(
        self,
        matrix: MatrixLike,
        ids: Optional[List[str]] = None,
        group: str = ROOT_GROUP,
    ) -> AHPLevelResultSchema:
        """
        Weights and consistency for one comparison matrix.

        Args:
            matrix: n x n comparison matrix (n <= 10)
            ids: Criterion ids of the rows, for labelling the result
            group: Parent criterion id (or 'root'), used in errors and logs

        Returns:
            AHPLevelResultSchema with weights summing to 1, CR and consistency flag
        """
        array = self.validate_matrix(matrix, group=group)
        n = array.shape[0]
        ids = list(ids) if ids is not None else [str(i) for i in range(n)]

        if n == 0:
            return AHPLevelResultSchema(group=group, ids=ids, weights=[])
        if n == 1:
            return AHPLevelResultSchema(group=group, ids=ids, weights=[1.0], lambda_max=1.0)

        weights = self.calculate_weights(array)
        lambda_max, ci, cr, is_consistent = self.check_consistency(array, weights)

        if not is_consistent:
            logger.warning(
                f"AHP matrix for '{group}' is NOT consistent "
                f"(CR={cr:.4f} >= {self.consistency_threshold}). "
                "Judgments should be reviewed."
            )

        return AHPLevelResultSchema(
            group=group,
            ids=ids,
            weights=[float(w) for w in weights],
            lambda_max=lambda_max,
            ci=ci,
            cr=cr,
            is_consistent=is_consistent,
        )

    # ------------------------------------------------------------------
    # Hierarchy
    # ------------------------------------------------------------------

    def solve_hierarchy(
        self,
        payload: HierarchyPayloadSchema,
    ) -> HierarchicalAHPResultSchema:
        """
        Complete hierarchical AHP: solve every comparison group, then combine
        local weights multiplicatively into global leaf weights.

        Groups with a single member get weight [1] without solving a matrix.
        Global weights are renormalized to sum to 1 over the leaves reached.

        Args:
            payload: Comparison groups (main + one per parent id)

        Returns:
            HierarchicalAHPResultSchema

        Raises:
            ValidationError: unknown ids, missing group for a node with two or
                more children, non-square matrix, id/name length mismatch
        """
        if self.hierarchy is None:
            raise ValidationError("solve_hierarchy requires a criteria hierarchy")

        hierarchy = self.hierarchy
        groups = payload.groups()
        logger.info(f"Solving hierarchical AHP with {len(groups)} comparison group(s)")

        for key, group in groups.items():
            self._check_group(key, group)

        main_ids = list(payload.main_criteria.ids)
        main = self._solve_group(ROOT_GROUP, main_ids, groups[ROOT_GROUP])

        levels: Dict[str, AHPLevelResultSchema] = {}
        local_weights: Dict[str, float] = main.weight_map()

        # Depth-first over the subtree of each main criterion
        stack = list(reversed(main_ids))
        while stack:
            criterion = hierarchy.get(stack.pop())
            if criterion.is_leaf:
                continue
            children = list(criterion.children)
            if len(children) >= 2 and criterion.id not in groups:
                raise ValidationError(
                    f"Missing comparison matrix for '{criterion.id}' "
                    f"({len(children)} children)",
                    criterion_id=criterion.id,
                )
            level = self._solve_group(criterion.id, children, groups.get(criterion.id))
            levels[criterion.id] = level
            local_weights.update(level.weight_map())
            stack.extend(reversed(level.ids))

        unused = set(groups) - set(levels) - {ROOT_GROUP}
        if unused:
            logger.warning(f"Ignoring comparison groups outside the compared tree: {sorted(unused)}")

        global_weights = self._combine(main_ids, local_weights)

        all_levels = [main, *levels.values()]
        is_overall_consistent = all(level.is_consistent for level in all_levels)
        diagnostics = [
            DiagnosticSchema(
                kind=DiagnosticKind.CONSISTENCY_WARNING,
                code=DiagnosticCode.INCONSISTENT_MATRIX,
                message=(
                    f"Comparison matrix for '{level.group}' has CR={level.cr:.4f} "
                    f"(threshold {self.consistency_threshold})"
                ),
                criterion_id=None if level.group == ROOT_GROUP else level.group,
            )
            for level in all_levels
            if not level.is_consistent
        ]

        logger.info(
            f"Hierarchical AHP complete: {len(global_weights)} leaf weights, "
            f"overall consistent={is_overall_consistent}"
        )
        logger.debug(f"Global weights: {global_weights}")

        return HierarchicalAHPResultSchema(
            main=main,
            groups=levels,
            global_weights=global_weights,
            leaf_criteria=list(global_weights),
            is_overall_consistent=is_overall_consistent,
            evaluator_name=payload.evaluator_name,
            diagnostics=diagnostics,
        )

    def _check_group(self, key: str, group: ComparisonGroupSchema) -> None:
        """Structural checks of one payload group against the hierarchy."""
        hierarchy = self.hierarchy
        ids = group.ids

        if group.names and len(group.names) != len(ids):
            raise ValidationError(
                f"Group '{key}' has {len(ids)} ids but {len(group.names)} names",
                criterion_id=key,
            )
        if len(set(ids)) != len(ids):
            raise ValidationError(f"Group '{key}' lists a criterion twice", criterion_id=key)
        if group.matrix.size != len(ids) or not group.matrix.is_square:
            raise ValidationError(
                f"Group '{key}' matrix must be {len(ids)}x{len(ids)}",
                criterion_id=key,
            )
        for criterion_id in ids:
            hierarchy.get(criterion_id)

        if key == ROOT_GROUP:
            if not ids:
                raise ValidationError("Main criteria group is empty", criterion_id=key)
            non_roots = [cid for cid in ids if hierarchy.get(cid).parent_id is not None]
            if non_roots:
                raise ValidationError(
                    f"Main criteria group contains non-root criteria {non_roots}",
                    criterion_id=key,
                )
            return

        parent = hierarchy.get(key)
        if set(ids) != set(parent.children):
            raise ValidationError(
                f"Group '{key}' compares {sorted(ids)} but its children are "
                f"{sorted(parent.children)}",
                criterion_id=key,
            )

    def _solve_group(
        self,
        key: str,
        ids: List[str],
        group: Optional[ComparisonGroupSchema],
    ) -> AHPLevelResultSchema:
        if len(ids) == 1:
            return AHPLevelResultSchema(
                group=key, ids=ids, weights=[1.0], lambda_max=1.0, trivial=True
            )
        # Group ids may be ordered differently from the hierarchy's children
        return self.solve_matrix(group.matrix, ids=list(group.ids), group=key)

    def _combine(self, main_ids: List[str], local_weights: Dict[str, float]) -> Dict[str, float]:
        """Product of local weights along each leaf's path, renormalized to sum to 1."""
        hierarchy = self.hierarchy
        reached = [
            leaf_id for leaf_id in hierarchy.leaf_ids()
            if hierarchy.path_ids(leaf_id)[0] in main_ids
        ]

        raw: Dict[str, float] = {}
        for leaf_id in reached:
            weight = 1.0
            for criterion_id in hierarchy.path_ids(leaf_id):
                weight *= local_weights[criterion_id]
            raw[leaf_id] = weight

        total = sum(raw.values())
        if total <= 0:
            raise ValidationError("Global weights sum to zero; no leaf carries weight")

        return {leaf_id: weight / total for leaf_id, weight in raw.items()}
