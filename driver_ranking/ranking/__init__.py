"""
Driver Ranking Engine

Multi-criteria decision making for ranking drivers using AHP (Analytic
Hierarchy Process) and TOPSIS methods.

This module provides:
- A validated criteria hierarchy with benefit/cost polarity per leaf
- Criteria weight calculation using hierarchical AHP
- Multi-criteria ranking using TOPSIS
- Eligibility filtering and intake of tabular driver data
"""

from .aggregation import aggregate_matrices, average_global_weights
from .ahp_calculator import AHPCalculator
from .criteria import DRIVER_CRITERIA, build_driver_hierarchy
from .eligibility_filter import EligibilityFilter
from .exceptions import NotFoundError, ValidationError
from .hierarchy import CriteriaHierarchy, Criterion
from .intake import records_from_rows
from .orchestrator import Orchestrator
from .schemas import (
    AlternativeSchema,
    ComparisonMatrix,
    HierarchicalAHPResultSchema,
    HierarchyPayloadSchema,
    RankingRequestSchema,
    RankingResponseSchema,
    TOPSISResultSchema,
)
from .topsis_ranker import TOPSISRanker

__all__ = [
    "AHPCalculator",
    "TOPSISRanker",
    "EligibilityFilter",
    "Orchestrator",
    "Criterion",
    "CriteriaHierarchy",
    "DRIVER_CRITERIA",
    "build_driver_hierarchy",
    "records_from_rows",
    "average_global_weights",
    "aggregate_matrices",
    "ValidationError",
    "NotFoundError",
    "AlternativeSchema",
    "ComparisonMatrix",
    "HierarchyPayloadSchema",
    "HierarchicalAHPResultSchema",
    "TOPSISResultSchema",
    "RankingRequestSchema",
    "RankingResponseSchema",
]
