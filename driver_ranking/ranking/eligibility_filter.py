"""
Eligibility Filter

Keeps only drivers with enough activity in the evaluated period to be ranked
meaningfully (minimum number of trips and minimum distance driven).
"""

import logging
from typing import List, Optional, Tuple

from driver_ranking.config import settings

from .constants import DISTANCE_FIELD, TRIP_COUNT_FIELD
from .schemas import AlternativeSchema, RejectedAlternativeSchema

logger = logging.getLogger(__name__)


class EligibilityFilter:
    """
    Filters alternatives by activity thresholds.

    An alternative is eligible if:
        trip_count >= min_trip_count and distance_km >= min_distance_km

    Thresholds apply only to alternatives that report both attributes;
    the others are kept.
    """

    def __init__(
        self,
        min_trip_count: Optional[int] = None,
        min_distance_km: Optional[float] = None,
    ):
        """
        Initialize eligibility filter.

        Args:
            min_trip_count: Default minimum trips (settings if None)
            min_distance_km: Default minimum distance in km (settings if None)
        """
        self.min_trip_count = (
            min_trip_count if min_trip_count is not None else settings.min_trip_count
        )
        self.min_distance_km = (
            min_distance_km if min_distance_km is not None else settings.min_distance_km
        )

    def filter(
        self,
        alternatives: List[AlternativeSchema],
        min_trip_count: Optional[int] = None,
        min_distance_km: Optional[float] = None,
    ) -> Tuple[List[AlternativeSchema], List[RejectedAlternativeSchema]]:
        """
        Split alternatives into eligible and rejected, preserving input order.

        Args:
            alternatives: Candidate alternatives
            min_trip_count: Override of the default minimum trips
            min_distance_km: Override of the default minimum distance

        Returns:
            Tuple of:
            - List of eligible alternatives
            - List of rejected alternatives with reasons
        """
        min_trips = min_trip_count if min_trip_count is not None else self.min_trip_count
        min_distance = min_distance_km if min_distance_km is not None else self.min_distance_km

        logger.info(
            f"Filtering {len(alternatives)} candidates with "
            f"min_trip_count={min_trips}, min_distance_km={min_distance}"
        )

        eligible = []
        rejected = []

        for alternative in alternatives:
            trips = alternative.attributes.get(TRIP_COUNT_FIELD)
            distance = alternative.attributes.get(DISTANCE_FIELD)

            reasons = []
            if trips is not None and distance is not None:
                if trips < min_trips:
                    reasons.append("trip_count_below_minimum")
                if distance < min_distance:
                    reasons.append("distance_below_minimum")

            if not reasons:
                eligible.append(alternative)
                logger.debug(f"Alternative {alternative.alternative_id} ELIGIBLE")
            else:
                rejected.append(RejectedAlternativeSchema(
                    alternative_id=alternative.alternative_id,
                    reason=",".join(reasons),
                    trip_count=trips,
                    distance_km=distance,
                ))
                logger.debug(
                    f"Alternative {alternative.alternative_id} REJECTED: {', '.join(reasons)}"
                )

        logger.info(
            f"Eligibility filtering complete: {len(eligible)} eligible, "
            f"{len(rejected)} rejected"
        )

        return eligible, rejected
