"""Tests for the command-line entry point."""

import json
import logging

import numpy as np
import structlog

from driver_ranking.ranking.criteria import build_driver_hierarchy
from driver_ranking.ranking.schemas import ComparisonGroupSchema, HierarchyPayloadSchema
from main import EXIT_INVALID_INPUT, main


def write_equal_payload(path):
    """Write a payload with equal judgments in every group."""
    template = build_driver_hierarchy().empty_payload()
    payload = HierarchyPayloadSchema(
        main_criteria=ComparisonGroupSchema(
            ids=template.main_criteria.ids, matrix=np.ones((2, 2))
        ),
        sub_criteria={
            key: ComparisonGroupSchema(ids=g.ids, matrix=np.ones((len(g.ids), len(g.ids))))
            for key, g in template.sub_criteria.items()
        },
    )
    path.write_text(payload.model_dump_json(by_alias=True), encoding="utf-8")
    return payload


class TestMain:
    """Test suite for main()."""

    def teardown_method(self):
        # main() points the root logger at the captured stderr
        logging.root.handlers = []
        structlog.reset_defaults()

    def test_template(self, capsys):
        assert main(["template"]) == 0

        output = json.loads(capsys.readouterr().out)
        assert output["mainCriteria"]["ids"] == ["admin", "technical"]
        assert "discipline" in output["subCriteria"]

    def test_weights(self, tmp_path, capsys):
        path = tmp_path / "payload.json"
        write_equal_payload(path)

        assert main(["weights", str(path)]) == 0

        output = json.loads(capsys.readouterr().out)
        assert len(output["global_weights"]) == 15
        assert abs(sum(output["global_weights"].values()) - 1.0) < 1e-9
        assert output["is_overall_consistent"] is True

    def test_weights_incomplete_payload(self, tmp_path, capsys):
        path = tmp_path / "payload.json"
        path.write_text(
            build_driver_hierarchy().empty_payload().model_dump_json(by_alias=True),
            encoding="utf-8",
        )

        assert main(["weights", str(path)]) == EXIT_INVALID_INPUT
        assert capsys.readouterr().out == ""

    def test_rank(self, tmp_path, capsys):
        hierarchy = build_driver_hierarchy()
        request = {
            "alternatives": [
                {
                    "alternative_id": f"D{i}",
                    "values": {leaf_id: float(i) for leaf_id in hierarchy.leaf_ids()},
                    "attributes": {"trip_count": 50, "distance_km": 900.0},
                }
                for i in (1, 2, 3)
            ],
            "global_weights": hierarchy.default_weights(),
        }
        path = tmp_path / "request.json"
        path.write_text(json.dumps(request), encoding="utf-8")

        assert main(["rank", str(path)]) == 0

        output = json.loads(capsys.readouterr().out)
        assert output["status"] == "success"
        assert [r["rank"] for r in output["ranked"]] == [1, 2, 3]

    def test_rank_invalid_request(self, tmp_path):
        path = tmp_path / "request.json"
        path.write_text(json.dumps({"alternatives": []}), encoding="utf-8")

        assert main(["rank", str(path)]) == EXIT_INVALID_INPUT

    def test_missing_input_file(self, tmp_path, capsys):
        path = tmp_path / "missing.json"

        assert main(["rank", str(path)]) == EXIT_INVALID_INPUT

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "unreadable_input" in captured.err

    def test_unreadable_input_path(self, tmp_path):
        # A directory cannot be read as a file
        assert main(["weights", str(tmp_path)]) == EXIT_INVALID_INPUT
