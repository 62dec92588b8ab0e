"""
Criteria Hierarchy - static tree of evaluation criteria.

A CriteriaHierarchy is built once from a list of Criterion records and is
read-only afterwards. It is passed explicitly to the AHP and TOPSIS engines.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .constants import Polarity, ROOT_GROUP
from .exceptions import NotFoundError, ValidationError
from .schemas import ComparisonGroupSchema, ComparisonMatrix, HierarchyPayloadSchema

logger = logging.getLogger(__name__)


class Criterion(BaseModel):
    """One node of the criteria tree."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Unique criterion identifier")
    name: str = Field(..., description="Display name")
    level: int = Field(..., ge=1, description="1 for root criteria, +1 per depth")
    parent_id: Optional[str] = Field(None, description="Parent criterion id (None at root level)")
    children: Tuple[str, ...] = Field(default=(), description="Ordered child criterion ids")
    is_benefit: Optional[bool] = Field(
        None,
        description="True if higher values are better, False if lower; leaves only",
    )
    description: Optional[str] = None

    @property
    def is_leaf(self) -> bool:
        return not self.children


class CriteriaHierarchy:
    """
    Immutable registry over a forest of criteria.

    Iteration order of every view is declaration order, so leaf enumeration
    (weight normalization, TOPSIS column order) is deterministic.
    """

    def __init__(self, criteria: Iterable[Criterion]):
        self._criteria: Dict[str, Criterion] = {}
        for criterion in criteria:
            if criterion.id in self._criteria:
                raise ValidationError(
                    f"Duplicate criterion id '{criterion.id}'",
                    criterion_id=criterion.id,
                )
            self._criteria[criterion.id] = criterion

        self._validate()
        logger.debug(
            f"Criteria hierarchy built: {len(self._criteria)} criteria, "
            f"{len(self.leaf_ids())} leaves"
        )

    def _validate(self) -> None:
        for criterion in self._criteria.values():
            if criterion.parent_id is None:
                if criterion.level != 1:
                    raise ValidationError(
                        f"Root criterion '{criterion.id}' must be at level 1, got {criterion.level}",
                        criterion_id=criterion.id,
                    )
            else:
                parent = self._criteria.get(criterion.parent_id)
                if parent is None:
                    raise ValidationError(
                        f"Criterion '{criterion.id}' references unknown parent '{criterion.parent_id}'",
                        criterion_id=criterion.id,
                    )
                if criterion.id not in parent.children:
                    raise ValidationError(
                        f"Parent '{parent.id}' does not list '{criterion.id}' as a child",
                        criterion_id=criterion.id,
                    )
                # level = parent level + 1 also rules out cycles
                if criterion.level != parent.level + 1:
                    raise ValidationError(
                        f"Criterion '{criterion.id}' has level {criterion.level}, "
                        f"expected {parent.level + 1}",
                        criterion_id=criterion.id,
                    )

            if len(set(criterion.children)) != len(criterion.children):
                raise ValidationError(
                    f"Criterion '{criterion.id}' lists a child twice",
                    criterion_id=criterion.id,
                )
            for child_id in criterion.children:
                child = self._criteria.get(child_id)
                if child is None or child.parent_id != criterion.id:
                    raise ValidationError(
                        f"Child '{child_id}' of '{criterion.id}' does not point back to it",
                        criterion_id=criterion.id,
                    )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def __contains__(self, criterion_id: str) -> bool:
        return criterion_id in self._criteria

    def __iter__(self):
        return iter(self._criteria.values())

    def __len__(self) -> int:
        return len(self._criteria)

    def get(self, criterion_id: str) -> Criterion:
        """
        Get a criterion by id.

        Raises:
            NotFoundError: if the id is unknown
        """
        try:
            return self._criteria[criterion_id]
        except KeyError:
            raise NotFoundError(
                f"Unknown criterion '{criterion_id}'",
                criterion_id=criterion_id,
            ) from None

    def roots(self) -> List[Criterion]:
        """Criteria without a parent, in declaration order."""
        return [c for c in self._criteria.values() if c.parent_id is None]

    def children_of(self, criterion_id: Optional[str]) -> List[Criterion]:
        """Children of a criterion, or the roots when criterion_id is None/ROOT_GROUP."""
        if criterion_id is None or criterion_id == ROOT_GROUP:
            return self.roots()
        return [self._criteria[child_id] for child_id in self.get(criterion_id).children]

    def leaf_criteria(self) -> List[Criterion]:
        """All leaf criteria in declaration order."""
        return [c for c in self._criteria.values() if c.is_leaf]

    def leaf_ids(self) -> List[str]:
        return [c.id for c in self.leaf_criteria()]

    def leaves_under(self, criterion_id: str) -> List[str]:
        """Leaf ids descending from a criterion (itself if it is a leaf), declaration order."""
        return [
            leaf.id for leaf in self.leaf_criteria()
            if criterion_id in self.path_ids(leaf.id)
        ]

    def criteria_at_level(self, level: int) -> List[Criterion]:
        return [c for c in self._criteria.values() if c.level == level]

    def path_to_root(self, criterion_id: str) -> List[Criterion]:
        """
        Ancestors of a criterion, from the root down to the criterion itself.

        Raises:
            NotFoundError: if the id is unknown
        """
        path = [self.get(criterion_id)]
        while path[0].parent_id is not None:
            path.insert(0, self.get(path[0].parent_id))
        return path

    def path_ids(self, criterion_id: str) -> List[str]:
        return [c.id for c in self.path_to_root(criterion_id)]

    def path_names(self, criterion_id: str, separator: str = " > ") -> str:
        """Human-readable path, e.g. 'Administrative > Overtime > Weekend Overtime'."""
        return separator.join(c.name for c in self.path_to_root(criterion_id))

    def benefit_polarity(self, criterion_id: str) -> Polarity:
        """
        Optimization direction of a leaf criterion.

        Returns Polarity.UNKNOWN (never a default direction) when the id is not
        found, is not a leaf, or has no configured polarity.
        """
        criterion = self._criteria.get(criterion_id)
        if criterion is None or not criterion.is_leaf or criterion.is_benefit is None:
            return Polarity.UNKNOWN
        return Polarity.BENEFIT if criterion.is_benefit else Polarity.COST

    def names(self, criterion_ids: Iterable[str]) -> List[str]:
        """Display names; unknown ids are returned unchanged."""
        return [
            self._criteria[cid].name if cid in self._criteria else cid
            for cid in criterion_ids
        ]

    def descriptions(self) -> Dict[str, str]:
        return {cid: c.description or "" for cid, c in self._criteria.items()}

    def name_to_id(self) -> Dict[str, str]:
        return {c.name: cid for cid, c in self._criteria.items()}

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def comparison_groups(self) -> Dict[str, List[str]]:
        """
        Sibling groups that need a comparison matrix (two or more members).

        Keyed by parent id, ROOT_GROUP for the top level; breadth-first order.
        """
        groups: Dict[str, List[str]] = {}
        queue: List[Optional[str]] = [None]
        while queue:
            parent_id = queue.pop(0)
            members = [c.id for c in self.children_of(parent_id)]
            if len(members) >= 2:
                groups[parent_id or ROOT_GROUP] = members
            queue.extend(cid for cid in members if not self._criteria[cid].is_leaf)
        return groups

    def default_weights(self) -> Dict[str, float]:
        """Equal global weights over all leaves."""
        leaf_ids = self.leaf_ids()
        if not leaf_ids:
            return {}
        equal_weight = 1 / len(leaf_ids)
        return {leaf_id: equal_weight for leaf_id in leaf_ids}

    def empty_payload(self) -> HierarchyPayloadSchema:
        """
        Comparison payload skeleton: one group per sibling set with two or
        more members, diagonal 1, every judgment unset.
        """
        groups = {}
        for key, ids in self.comparison_groups().items():
            groups[key] = ComparisonGroupSchema(
                ids=ids,
                names=self.names(ids),
                matrix=ComparisonMatrix.empty(len(ids)),
            )

        root_ids = [c.id for c in self.roots()]
        main = groups.pop(ROOT_GROUP, None) or ComparisonGroupSchema(
            ids=root_ids,
            names=self.names(root_ids),
            matrix=ComparisonMatrix.empty(len(root_ids)),
        )
        return HierarchyPayloadSchema(main_criteria=main, sub_criteria=groups)
