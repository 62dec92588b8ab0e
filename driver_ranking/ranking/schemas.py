"""
Pydantic schemas for the driver ranking engine.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, model_serializer, model_validator
from pydantic.alias_generators import to_camel

from .constants import DiagnosticCode, DiagnosticKind, ROOT_GROUP
from .exceptions import ValidationError


class ComparisonMatrix(BaseModel):
    """
    Pairwise comparison matrix with explicit "not yet judged" cells.

    Each cell is either None (unset) or a positive Saaty judgment. A pair
    (i, j) is judged as soon as one of its two cells is set; the other cell
    is then read as the reciprocal. Payloads may use 0 for unset cells, as
    0 is never a valid judgment. Instances are immutable; with_judgment()
    returns a new matrix.

    Serializes to a plain list of rows (None for unset cells).
    """

    model_config = ConfigDict(frozen=True)

    cells: Tuple[Tuple[Optional[float], ...], ...]

    @model_validator(mode="before")
    @classmethod
    def _from_rows(cls, data: Any) -> Any:
        if isinstance(data, np.ndarray):
            data = data.tolist()
        if isinstance(data, (list, tuple)):
            data = {"cells": data}
        if not isinstance(data, dict) or "cells" not in data:
            return data

        rows = []
        for row in data["cells"]:
            if not isinstance(row, (list, tuple)):
                raise ValueError("Matrix rows must be sequences")
            cells = []
            for value in row:
                if value is None or value == 0:
                    cells.append(None)
                elif isinstance(value, bool) or not isinstance(value, (int, float)):
                    raise ValueError(f"Matrix entries must be numbers, got {value!r}")
                elif value < 0 or not np.isfinite(value):
                    raise ValueError(f"Matrix entries must be positive and finite, got {value}")
                else:
                    cells.append(float(value))
            rows.append(tuple(cells))
        return {"cells": tuple(rows)}

    @model_serializer
    def _to_rows(self) -> List[List[Optional[float]]]:
        return [list(row) for row in self.cells]

    @classmethod
    def empty(cls, n: int) -> "ComparisonMatrix":
        """n x n matrix with a unit diagonal and every judgment unset."""
        return cls(cells=tuple(
            tuple(1.0 if i == j else None for j in range(n)) for i in range(n)
        ))

    @classmethod
    def from_judgments(
        cls,
        ids: List[str],
        judgments: Dict[Tuple[str, str], float],
    ) -> "ComparisonMatrix":
        """
        Build a matrix from named judgments.

        Args:
            ids: Ordered criterion ids (matrix rows/columns)
            judgments: {(a, b): value} meaning "a is `value` times as important as b"

        Returns:
            Matrix with each judged pair set and its reciprocal implied
        """
        index = {criterion_id: i for i, criterion_id in enumerate(ids)}
        matrix = cls.empty(len(ids))
        for (a, b), value in judgments.items():
            if a not in index or b not in index:
                missing = a if a not in index else b
                raise ValidationError(
                    f"Judgment references '{missing}' which is not in {ids}",
                    criterion_id=missing,
                )
            matrix = matrix.with_judgment(index[a], index[b], value)
        return matrix

    @property
    def size(self) -> int:
        return len(self.cells)

    @property
    def is_square(self) -> bool:
        return all(len(row) == self.size for row in self.cells)

    def value(self, i: int, j: int) -> Optional[float]:
        """Effective judgment of i over j, or None if the pair is unset."""
        if i == j:
            return self.cells[i][i] if self.cells[i][i] is not None else 1.0
        if self.cells[i][j] is not None:
            return self.cells[i][j]
        if self.cells[j][i] is not None:
            return 1.0 / self.cells[j][i]
        return None

    def with_judgment(self, i: int, j: int, value: float) -> "ComparisonMatrix":
        """New matrix with a[i][j] = value and a[j][i] = 1 / value."""
        if i == j:
            raise ValidationError("Diagonal entries are fixed at 1")
        if value <= 0:
            raise ValidationError(f"Judgments must be positive, got {value}")
        rows = [list(row) for row in self.cells]
        rows[i][j] = float(value)
        rows[j][i] = 1.0 / float(value)
        return ComparisonMatrix(cells=rows)

    def missing_pairs(self) -> List[Tuple[int, int]]:
        """Index pairs (i < j) that have not been judged yet."""
        return [
            (i, j)
            for i in range(self.size)
            for j in range(i + 1, self.size)
            if self.value(i, j) is None
        ]

    @property
    def is_complete(self) -> bool:
        return not self.missing_pairs()

    def to_array(self) -> np.ndarray:
        """
        Dense float matrix with reciprocals filled in.

        Raises:
            ValidationError: if the matrix is not square or has unset pairs
        """
        if not self.is_square:
            raise ValidationError(f"Matrix is not square ({self.size} rows)")
        missing = self.missing_pairs()
        if missing:
            raise ValidationError(
                f"Matrix has {len(missing)} unjudged pair(s): {missing}",
                details={"missing_pairs": missing},
            )
        n = self.size
        array = np.ones((n, n))
        for i in range(n):
            for j in range(n):
                array[i, j] = self.value(i, j)
        return array


class ComparisonGroupSchema(BaseModel):
    """Sibling criteria compared against each other, with their matrix."""

    ids: List[str] = Field(..., description="Ordered criterion ids")
    names: List[str] = Field(default_factory=list, description="Display names, parallel to ids")
    matrix: ComparisonMatrix = Field(..., description="len(ids) x len(ids) judgments")


class HierarchyPayloadSchema(BaseModel):
    """
    Comparison payload for a whole hierarchy.

    main_criteria compares the root criteria; sub_criteria and
    sub_sub_criteria hold one group per parent id (any depth may go in
    either mapping). Accepts camelCase keys.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    main_criteria: ComparisonGroupSchema
    sub_criteria: Dict[str, ComparisonGroupSchema] = Field(default_factory=dict)
    sub_sub_criteria: Dict[str, ComparisonGroupSchema] = Field(default_factory=dict)
    evaluator_name: Optional[str] = None

    @model_validator(mode="after")
    def _check_group_keys(self) -> "HierarchyPayloadSchema":
        overlap = set(self.sub_criteria) & set(self.sub_sub_criteria)
        if overlap:
            raise ValueError(f"Groups defined twice: {sorted(overlap)}")
        if ROOT_GROUP in self.sub_criteria or ROOT_GROUP in self.sub_sub_criteria:
            raise ValueError(f"'{ROOT_GROUP}' is reserved for main_criteria")
        return self

    def groups(self) -> Dict[str, ComparisonGroupSchema]:
        """All groups keyed by parent id, ROOT_GROUP for main_criteria."""
        return {ROOT_GROUP: self.main_criteria, **self.sub_criteria, **self.sub_sub_criteria}


class DiagnosticSchema(BaseModel):
    """Non-fatal condition observed while computing a result."""
    kind: DiagnosticKind
    code: DiagnosticCode
    message: str
    criterion_id: Optional[str] = None
    alternative_id: Optional[str] = None


class AHPLevelResultSchema(BaseModel):
    """Weights and consistency of one comparison group."""
    group: str = Field(..., description="Parent criterion id, or 'root'")
    ids: List[str]
    weights: List[float]
    lambda_max: float = 0.0
    ci: float = Field(0.0, description="Consistency index")
    cr: float = Field(0.0, ge=0, description="Consistency ratio")
    is_consistent: bool = True
    trivial: bool = Field(False, description="True when no matrix was solved (single child)")

    def weight_map(self) -> Dict[str, float]:
        return dict(zip(self.ids, self.weights))


class HierarchicalAHPResultSchema(BaseModel):
    """Per-group AHP results plus global leaf weights."""
    main: AHPLevelResultSchema
    groups: Dict[str, AHPLevelResultSchema] = Field(default_factory=dict)
    global_weights: Dict[str, float]
    leaf_criteria: List[str]
    is_overall_consistent: bool
    evaluator_name: Optional[str] = None
    diagnostics: List[DiagnosticSchema] = Field(default_factory=list)

    def consistency_ratios(self) -> Dict[str, float]:
        ratios = {ROOT_GROUP: self.main.cr}
        ratios.update({key: level.cr for key, level in self.groups.items()})
        return ratios


class AlternativeSchema(BaseModel):
    """One ranked entity (a driver) with its raw criterion values."""
    alternative_id: str = Field(..., min_length=1, description="Identifier (e.g. registry number)")
    values: Dict[str, float] = Field(default_factory=dict, description="Leaf criterion id -> raw value")
    attributes: Dict[str, float] = Field(
        default_factory=dict,
        description="Non-criterion numeric fields (trip_count, distance_km, ...)",
    )


class TOPSISResultSchema(BaseModel):
    """Full TOPSIS trace for one alternative."""
    alternative_id: str
    rank: int = Field(..., ge=1)
    closeness_coefficient: float = Field(..., ge=0, le=1)
    distance_to_positive: float = Field(..., ge=0)
    distance_to_negative: float = Field(..., ge=0)
    raw_performance: Dict[str, float]
    normalized_performance: Dict[str, float]
    weighted_normalized_performance: Dict[str, float]
    ideal_positive: Dict[str, float]
    ideal_negative: Dict[str, float]
    group_scores: Dict[str, float] = Field(
        default_factory=dict,
        description="Closeness coefficient per root criterion over its leaf columns",
    )


class TOPSISReportSchema(BaseModel):
    """Ranked results plus the inputs actually used and any diagnostics."""
    results: List[TOPSISResultSchema]
    criteria: List[str]
    weights_used: Dict[str, float]
    diagnostics: List[DiagnosticSchema] = Field(default_factory=list)


# ----------------------------------------------------------------------
# Orchestrator request / response
# ----------------------------------------------------------------------

class RankingOptionsSchema(BaseModel):
    """Options for a ranking run."""
    min_trip_count: Optional[int] = Field(None, ge=0, description="None = settings default")
    min_distance_km: Optional[float] = Field(None, ge=0, description="None = settings default")
    criteria: Optional[List[str]] = Field(
        None,
        description="Subset of leaf criteria to rank on (None = all)",
    )
    top_k: Optional[int] = Field(None, ge=1, description="Number of results to return (None = all)")


class RankingRequestSchema(BaseModel):
    """Request to rank drivers; exactly one weight source must be given."""
    alternatives: List[AlternativeSchema]
    comparisons: Optional[HierarchyPayloadSchema] = None
    global_weights: Optional[Dict[str, float]] = None
    options: RankingOptionsSchema = Field(default_factory=RankingOptionsSchema)
    include_details: bool = False

    @model_validator(mode="after")
    def _one_weight_source(self) -> "RankingRequestSchema":
        if (self.comparisons is None) == (self.global_weights is None):
            raise ValueError("Provide exactly one of 'comparisons' or 'global_weights'")
        return self


class RejectedAlternativeSchema(BaseModel):
    alternative_id: str
    reason: str
    trip_count: Optional[float] = None
    distance_km: Optional[float] = None


class FilterStatisticsSchema(BaseModel):
    total: int
    eligible: int
    rejected: int
    min_trip_count: int
    min_distance_km: float
    rejected_alternatives: List[RejectedAlternativeSchema] = Field(default_factory=list)


class WeightUsedSchema(BaseModel):
    criterion_id: str
    criterion_name: str
    weight: float
    percentage: str


class RankedAlternativeSchema(BaseModel):
    rank: int = Field(..., ge=1)
    alternative_id: str
    closeness_coefficient: float = Field(..., ge=0, le=1)
    group_scores: Dict[str, float] = Field(default_factory=dict)
    details: Optional[TOPSISResultSchema] = None


class RankingMetadataSchema(BaseModel):
    filter_statistics: FilterStatisticsSchema
    weights_used: List[WeightUsedSchema] = Field(default_factory=list)
    criteria_used: List[str] = Field(default_factory=list)
    consistency_ratios: Dict[str, float] = Field(default_factory=dict)
    is_overall_consistent: Optional[bool] = None
    processing_time_ms: float = 0.0


class RankingResponseSchema(BaseModel):
    status: str = "success"
    evaluation_id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    ranked: List[RankedAlternativeSchema]
    metadata: RankingMetadataSchema
    diagnostics: List[DiagnosticSchema] = Field(default_factory=list)
    warnings: Optional[List[str]] = None
