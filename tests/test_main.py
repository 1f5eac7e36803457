"""Tests for the command-line entry point."""

import json
from unittest.mock import MagicMock, patch

import pytest

from applyo.exceptions import AgentError
from applyo.main import build_parser, main, populate_all


def batch(offset, total, size):
    next_offset = offset + size
    return {
        "success": True,
        "progress": f"{min(next_offset, total)}/{total}",
        "hasMore": next_offset < total,
        "nextOffset": next_offset,
    }


class TestPopulateAll:
    def test_loops_until_done(self):
        index = MagicMock()
        index.populate_companies.side_effect = lambda offset, limit: batch(offset, 5, limit)

        results = populate_all(index, "companies", 2)

        offsets = [c.kwargs["offset"] for c in index.populate_companies.call_args_list]
        assert offsets == [0, 2, 4]
        assert results["companies"]["hasMore"] is False
        index.populate_employees.assert_not_called()

    def test_both_targets(self):
        index = MagicMock()
        index.populate_companies.side_effect = lambda offset, limit: batch(offset, 1, limit)
        index.populate_employees.side_effect = lambda offset, limit: batch(offset, 1, limit)

        assert set(populate_all(index, "both", 10)) == {"companies", "employees"}

    def test_stops_on_failure(self):
        index = MagicMock()
        index.populate_employees.return_value = {"success": False, "message": "No employees found in database"}

        results = populate_all(index, "employees", 10)

        assert index.populate_employees.call_count == 1
        assert results["employees"]["success"] is False


class TestParser:
    def test_populate_defaults(self):
        args = build_parser().parse_args(["populate-vectors"])
        assert args.target == "both"
        assert args.batch_size == 50

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestMain:
    def test_enrich_prints_result(self, capsys):
        with patch("applyo.agents.Orchestrator") as orchestrator:
            orchestrator.return_value.run.return_value = {"company": "Stripe", "people": []}
            assert main(["enrich", "Stripe"]) == 0

        assert json.loads(capsys.readouterr().out)["company"] == "Stripe"
        orchestrator.return_value.run.assert_called_once_with({"query": "Stripe"})

    def test_enrich_failure(self, capsys):
        with patch("applyo.agents.Orchestrator") as orchestrator:
            orchestrator.return_value.run.side_effect = AgentError("parsing error", 500)
            assert main(["enrich", "Stripe"]) == 1

        assert json.loads(capsys.readouterr().out) == {"error": "parsing error"}

    def test_unexpected_error(self):
        with patch("applyo.database.init_database", side_effect=RuntimeError("boom")):
            assert main(["init-db"]) == 1
