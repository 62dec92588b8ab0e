"""
Orchestrator - Main coordinator of a driver ranking run

Coordinates the 3-phase ranking process:
1. Phase 1: Eligibility filtering (minimum trips / distance)
2. Phase 2: AHP global weights (or caller-supplied weights)
3. Phase 3: TOPSIS multi-criteria ranking
"""

import time
from typing import Dict, List, Optional, Tuple
from uuid import uuid4

from driver_ranking.config import Settings, settings as default_settings
from driver_ranking.logging_config import get_logger
from driver_ranking.utils.context import (
    clear_all_context,
    generate_correlation_id,
    set_evaluation_id,
    set_evaluator_name,
)

from .ahp_calculator import AHPCalculator
from .constants import DiagnosticKind, ROOT_GROUP
from .criteria import build_driver_hierarchy
from .eligibility_filter import EligibilityFilter
from .exceptions import ValidationError
from .hierarchy import CriteriaHierarchy
from .schemas import (
    AlternativeSchema,
    DiagnosticSchema,
    FilterStatisticsSchema,
    HierarchicalAHPResultSchema,
    RankedAlternativeSchema,
    RankingMetadataSchema,
    RankingRequestSchema,
    RankingResponseSchema,
    TOPSISReportSchema,
    WeightUsedSchema,
)
from .topsis_ranker import TOPSISRanker

logger = get_logger(__name__)


class Orchestrator:
    """
    Orchestrates the complete driver ranking workflow.

    Workflow:
    1. Filter candidates by activity (trip count, distance)
    2. Derive global criteria weights with hierarchical AHP, or take them
       from the request
    3. Rank eligible candidates using TOPSIS, ties broken by the
       configured attribute (descending)
    4. Format and return response
    """

    def __init__(
        self,
        hierarchy: Optional[CriteriaHierarchy] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize orchestrator with all required components.

        Args:
            hierarchy: Criteria tree (driver evaluation criteria by default)
            settings: Configuration (process settings by default)
        """
        self.settings = settings if settings is not None else default_settings
        self.hierarchy = hierarchy if hierarchy is not None else build_driver_hierarchy()
        self.eligibility_filter = EligibilityFilter(
            min_trip_count=self.settings.min_trip_count,
            min_distance_km=self.settings.min_distance_km,
        )
        self.ahp_calculator = AHPCalculator(
            self.hierarchy,
            consistency_threshold=self.settings.consistency_threshold,
            reciprocal_tolerance=self.settings.reciprocal_tolerance,
        )
        self.topsis_ranker = TOPSISRanker(
            self.hierarchy,
            weight_sum_tolerance=self.settings.weight_sum_tolerance,
        )

    def tiebreak_value(self, alternative: AlternativeSchema) -> Optional[float]:
        """Secondary sort value for equal closeness coefficients."""
        return alternative.attributes.get(self.settings.tiebreak_field)

    def rank_drivers(self, request: RankingRequestSchema) -> RankingResponseSchema:
        """
        Complete ranking workflow.

        Args:
            request: Alternatives, weight source and options

        Returns:
            RankingResponseSchema with ranked drivers

        Raises:
            ValidationError: malformed comparisons, weights or alternatives
        """
        start = time.perf_counter()
        evaluation_id = uuid4().hex[:12]

        try:
            generate_correlation_id()
            set_evaluation_id(evaluation_id)
            if request.comparisons is not None and request.comparisons.evaluator_name:
                set_evaluator_name(request.comparisons.evaluator_name)

            return self._rank(request, evaluation_id, start)

        finally:
            # Context belongs to this run only
            clear_all_context()

    def _rank(
        self,
        request: RankingRequestSchema,
        evaluation_id: str,
        start: float,
    ) -> RankingResponseSchema:
        options = request.options
        log = logger.bind(evaluation_id=evaluation_id)
        log.info("ranking_started", candidates=len(request.alternatives))

        # ============================================================
        # PHASE 1: ELIGIBILITY FILTERING
        # ============================================================
        eligible, rejected = self.eligibility_filter.filter(
            request.alternatives,
            min_trip_count=options.min_trip_count,
            min_distance_km=options.min_distance_km,
        )
        filter_statistics = FilterStatisticsSchema(
            total=len(request.alternatives),
            eligible=len(eligible),
            rejected=len(rejected),
            min_trip_count=(
                options.min_trip_count
                if options.min_trip_count is not None
                else self.eligibility_filter.min_trip_count
            ),
            min_distance_km=(
                options.min_distance_km
                if options.min_distance_km is not None
                else self.eligibility_filter.min_distance_km
            ),
            rejected_alternatives=rejected,
        )
        log.info("phase1_complete", eligible=len(eligible), rejected=len(rejected))

        # ============================================================
        # PHASE 2: WEIGHTS
        # ============================================================
        ahp_result: Optional[HierarchicalAHPResultSchema] = None
        if request.comparisons is not None:
            ahp_result = self.ahp_calculator.solve_hierarchy(request.comparisons)
            global_weights = ahp_result.global_weights
        else:
            global_weights = dict(request.global_weights)

        weights, criteria = self._select_criteria(global_weights, options.criteria)
        log.info("phase2_complete", criteria=len(weights))

        diagnostics: List[DiagnosticSchema] = list(ahp_result.diagnostics) if ahp_result else []

        if not eligible:
            log.warning("no_eligible_candidates")
            return self._build_response(
                evaluation_id=evaluation_id,
                ranked=[],
                report=None,
                ahp_result=ahp_result,
                weights=weights,
                criteria=criteria,
                filter_statistics=filter_statistics,
                diagnostics=diagnostics,
                extra_warnings=["No eligible drivers after filtering"],
                start=start,
            )

        # ============================================================
        # PHASE 3: TOPSIS RANKING
        # ============================================================
        report = self.topsis_ranker.evaluate(
            eligible,
            weights,
            criteria=criteria,
            tiebreak_key=self.tiebreak_value,
        )
        diagnostics.extend(report.diagnostics)
        log.info("phase3_complete", ranked=len(report.results))

        results = report.results
        if options.top_k is not None:
            results = results[:options.top_k]

        ranked = [
            RankedAlternativeSchema(
                rank=result.rank,
                alternative_id=result.alternative_id,
                closeness_coefficient=result.closeness_coefficient,
                group_scores=result.group_scores,
                details=result if request.include_details else None,
            )
            for result in results
        ]

        return self._build_response(
            evaluation_id=evaluation_id,
            ranked=ranked,
            report=report,
            ahp_result=ahp_result,
            weights=weights,
            criteria=report.criteria,
            filter_statistics=filter_statistics,
            diagnostics=diagnostics,
            extra_warnings=[],
            start=start,
        )

    def _select_criteria(
        self,
        global_weights: Dict[str, float],
        selected: Optional[List[str]],
    ) -> Tuple[Dict[str, float], List[str]]:
        """
        Restrict weights to the selected leaf criteria and renormalize them
        over that subset. Without a selection every weighted leaf is used.
        """
        leaf_ids = self.hierarchy.leaf_ids()

        if selected is None:
            criteria = [cid for cid in leaf_ids if cid in global_weights]
            unknown = sorted(set(global_weights) - set(leaf_ids))
            if unknown:
                raise ValidationError(
                    f"Weights given for non-leaf or unknown criteria: {unknown}",
                    criterion_id=unknown[0],
                )
            return dict(global_weights), criteria

        for criterion_id in selected:
            self.hierarchy.get(criterion_id)
        criteria = [cid for cid in leaf_ids if cid in set(selected)]
        if len(criteria) != len(set(selected)):
            non_leaves = sorted(set(selected) - set(criteria))
            raise ValidationError(
                f"Only leaf criteria can be selected for ranking: {non_leaves}",
                criterion_id=non_leaves[0],
            )

        subset = {cid: global_weights[cid] for cid in criteria if cid in global_weights}
        total = sum(subset.values())
        if total == 0:
            raise ValidationError("Selected criteria carry no weight")
        return {cid: weight / total for cid, weight in subset.items()}, criteria

    def _build_response(
        self,
        evaluation_id: str,
        ranked: List[RankedAlternativeSchema],
        report: Optional[TOPSISReportSchema],
        ahp_result: Optional[HierarchicalAHPResultSchema],
        weights: Dict[str, float],
        criteria: List[str],
        filter_statistics: FilterStatisticsSchema,
        diagnostics: List[DiagnosticSchema],
        extra_warnings: List[str],
        start: float,
    ) -> RankingResponseSchema:
        applied = report.weights_used if report is not None else weights
        weights_used = sorted(
            (
                WeightUsedSchema(
                    criterion_id=criterion_id,
                    criterion_name=self.hierarchy.get(criterion_id).name,
                    weight=weight,
                    percentage=f"{weight * 100:.2f}%",
                )
                for criterion_id, weight in applied.items()
            ),
            key=lambda entry: entry.weight,
            reverse=True,
        )

        processing_time_ms = (time.perf_counter() - start) * 1000

        metadata = RankingMetadataSchema(
            filter_statistics=filter_statistics,
            weights_used=weights_used,
            criteria_used=self.hierarchy.names(criteria),
            consistency_ratios=ahp_result.consistency_ratios() if ahp_result else {},
            is_overall_consistent=ahp_result.is_overall_consistent if ahp_result else None,
            processing_time_ms=processing_time_ms,
        )

        warnings = self._generate_warnings(ahp_result, diagnostics) + extra_warnings

        logger.info(
            "ranking_complete",
            evaluation_id=evaluation_id,
            ranked=len(ranked),
            duration_ms=round(processing_time_ms, 2),
        )

        return RankingResponseSchema(
            evaluation_id=evaluation_id,
            ranked=ranked,
            metadata=metadata,
            diagnostics=diagnostics,
            warnings=warnings or None,
        )

    def _generate_warnings(
        self,
        ahp_result: Optional[HierarchicalAHPResultSchema],
        diagnostics: List[DiagnosticSchema],
    ) -> List[str]:
        """
        Human-readable warnings: one per inconsistent comparison group, then
        one per degenerate-input diagnostic.
        """
        warnings = []

        if ahp_result is not None:
            levels = [ahp_result.main, *ahp_result.groups.values()]
            for level in levels:
                if not level.is_consistent:
                    label = "main criteria" if level.group == ROOT_GROUP else f"'{level.group}'"
                    warnings.append(
                        f"Comparison matrix for {label} is not consistent "
                        f"(CR={level.cr:.4f} >= {self.settings.consistency_threshold}). "
                        "Results may be unreliable."
                    )

        warnings.extend(
            diagnostic.message
            for diagnostic in diagnostics
            if diagnostic.kind != DiagnosticKind.CONSISTENCY_WARNING
        )

        return warnings
