"""Tests for the criteria hierarchy registry and the driver criteria."""

import pydantic
import pytest

from driver_ranking.ranking.constants import Polarity, ROOT_GROUP
from driver_ranking.ranking.criteria import DRIVER_CRITERIA, build_driver_hierarchy
from driver_ranking.ranking.exceptions import NotFoundError, ValidationError
from driver_ranking.ranking.hierarchy import CriteriaHierarchy, Criterion


class TestCriteriaHierarchy:
    """Test suite for hierarchy validation and lookups."""

    def setup_method(self):
        """Set up test fixtures."""
        self.hierarchy = build_driver_hierarchy()

    def test_driver_criteria_shape(self):
        assert len(self.hierarchy) == len(DRIVER_CRITERIA) == 20
        assert [c.id for c in self.hierarchy.roots()] == ["admin", "technical"]
        assert len(self.hierarchy.leaf_ids()) == 15
        assert len(self.hierarchy.criteria_at_level(2)) == 8
        assert len(self.hierarchy.criteria_at_level(3)) == 10

    def test_every_leaf_has_polarity(self):
        for leaf_id in self.hierarchy.leaf_ids():
            assert self.hierarchy.benefit_polarity(leaf_id) != Polarity.UNKNOWN

    def test_benefit_polarity(self):
        assert self.hierarchy.benefit_polarity("weekend_overtime") == Polarity.BENEFIT
        assert self.hierarchy.benefit_polarity("fatal_accident") == Polarity.COST
        assert self.hierarchy.benefit_polarity("speed") == Polarity.COST

        # Not a leaf, or not found
        assert self.hierarchy.benefit_polarity("overtime") == Polarity.UNKNOWN
        assert self.hierarchy.benefit_polarity("missing") == Polarity.UNKNOWN

    def test_leaf_declaration_order(self):
        assert self.hierarchy.leaf_ids()[:6] == [
            "attendance",
            "acceleration",
            "speed",
            "engine",
            "idle",
            "normal_overtime",
        ]

    def test_path_to_root(self):
        assert self.hierarchy.path_ids("holiday_overtime") == [
            "admin", "overtime", "holiday_overtime",
        ]
        assert self.hierarchy.path_ids("admin") == ["admin"]
        assert self.hierarchy.path_names("speed") == (
            "Technical Evaluation > Speeding Violation Count"
        )

    def test_get_unknown(self):
        with pytest.raises(NotFoundError) as exc_info:
            self.hierarchy.get("missing")

        assert exc_info.value.criterion_id == "missing"

    def test_children_of(self):
        assert [c.id for c in self.hierarchy.children_of(None)] == ["admin", "technical"]
        assert [c.id for c in self.hierarchy.children_of(ROOT_GROUP)] == ["admin", "technical"]
        assert [c.id for c in self.hierarchy.children_of("accident")] == [
            "fatal_accident", "injury_accident", "material_damage_accident",
        ]
        assert self.hierarchy.children_of("speed") == []

    def test_leaves_under(self):
        assert self.hierarchy.leaves_under("discipline") == [
            "first_degree_dismissal",
            "second_degree_dismissal",
            "third_degree_dismissal",
            "fourth_degree_dismissal",
        ]
        assert self.hierarchy.leaves_under("idle") == ["idle"]
        assert len(self.hierarchy.leaves_under("admin")) == 11

    def test_comparison_groups(self):
        groups = self.hierarchy.comparison_groups()

        assert list(groups) == [ROOT_GROUP, "admin", "technical", "overtime", "accident", "discipline"]
        assert groups["technical"] == ["acceleration", "speed", "engine", "idle"]

    def test_default_weights(self):
        weights = self.hierarchy.default_weights()

        assert len(weights) == 15
        assert sum(weights.values()) == pytest.approx(1.0)

    def test_empty_payload(self):
        payload = self.hierarchy.empty_payload()

        assert payload.main_criteria.ids == ["admin", "technical"]
        assert payload.main_criteria.names == ["Administrative Evaluation", "Technical Evaluation"]
        assert set(payload.sub_criteria) == {"admin", "technical", "overtime", "accident", "discipline"}
        assert payload.sub_criteria["discipline"].matrix.size == 4
        assert payload.sub_criteria["discipline"].matrix.is_complete is False

    def test_empty_payload_dumps_camel_case(self):
        dumped = self.hierarchy.empty_payload().model_dump(by_alias=True)

        assert "mainCriteria" in dumped
        assert dumped["mainCriteria"]["matrix"] == [[1.0, None], [None, 1.0]]

    def test_name_lookups(self):
        assert self.hierarchy.names(["speed", "unknown"]) == ["Speeding Violation Count", "unknown"]
        assert self.hierarchy.name_to_id()["Fatal Accidents"] == "fatal_accident"
        assert "speed" in self.hierarchy.descriptions()


class TestHierarchyValidation:
    """Structural errors detected when building a hierarchy."""

    def test_duplicate_id(self):
        with pytest.raises(ValidationError):
            CriteriaHierarchy([
                Criterion(id="a", name="A", level=1, is_benefit=True),
                Criterion(id="a", name="A again", level=1, is_benefit=True),
            ])

    def test_unknown_parent(self):
        with pytest.raises(ValidationError) as exc_info:
            CriteriaHierarchy([
                Criterion(id="b", name="B", level=2, parent_id="a", is_benefit=True),
            ])

        assert exc_info.value.criterion_id == "b"

    def test_parent_must_list_child(self):
        with pytest.raises(ValidationError):
            CriteriaHierarchy([
                Criterion(id="a", name="A", level=1, children=("c",)),
                Criterion(id="b", name="B", level=2, parent_id="a", is_benefit=True),
                Criterion(id="c", name="C", level=2, parent_id="a", is_benefit=True),
            ])

    def test_child_must_exist(self):
        with pytest.raises(ValidationError):
            CriteriaHierarchy([
                Criterion(id="a", name="A", level=1, children=("ghost",)),
            ])

    def test_level_must_follow_parent(self):
        with pytest.raises(ValidationError):
            CriteriaHierarchy([
                Criterion(id="a", name="A", level=1, children=("b",)),
                Criterion(id="b", name="B", level=3, parent_id="a", is_benefit=True),
            ])

    def test_root_must_be_level_one(self):
        with pytest.raises(ValidationError):
            CriteriaHierarchy([Criterion(id="a", name="A", level=2, is_benefit=True)])

    def test_cycle_rejected(self):
        with pytest.raises(ValidationError):
            CriteriaHierarchy([
                Criterion(id="a", name="A", level=2, parent_id="b", children=("b",)),
                Criterion(id="b", name="B", level=2, parent_id="a", children=("a",)),
            ])

    def test_duplicate_child(self):
        with pytest.raises(ValidationError):
            CriteriaHierarchy([
                Criterion(id="a", name="A", level=1, children=("b", "b")),
                Criterion(id="b", name="B", level=2, parent_id="a", is_benefit=True),
            ])

    def test_criterion_is_immutable(self):
        criterion = Criterion(id="a", name="A", level=1, is_benefit=True)

        with pytest.raises(pydantic.ValidationError):
            criterion.name = "B"
