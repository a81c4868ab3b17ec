import unittest

from errors import EmptyStateError, UnknownCapabilityError, ValidationError
from export import Publisher
from ingest import Collector
from store import RunHistory
from tools import ToolDispatcher

from helpers import R1, R2, R3, REGION_A, REGION_B, FakeClient, always_fail, one_point


class FakeRpc:
    def __init__(self):
        self.calls = []

    def call_tool(self, url, name, arguments=None):
        self.calls.append((url, name, arguments))
        return {"ok": True}


def make_dispatcher(respond=one_point):
    history = RunHistory()
    collector = Collector(FakeClient(respond), history, catalog=(R1, R2, R3), regions=(REGION_A, REGION_B))
    rpc = FakeRpc()
    dispatcher = ToolDispatcher(collector, history, Publisher(rpc, default_target="https://down.example/mcp"))
    return dispatcher, history, rpc


class ListToolsTests(unittest.TestCase):
    def test_capabilities(self):
        dispatcher, _, _ = make_dispatcher()
        tools = dispatcher.list_tools()
        self.assertEqual([t["name"] for t in tools], [
            "collector.run",
            "collector.status",
            "collector.list_catalog",
            "collector.get_collected",
            "collector.export_jsonld",
            "collector.publish",
        ])
        for t in tools:
            self.assertTrue(t["description"])
            self.assertEqual(t["inputSchema"]["type"], "object")

    def test_run_schema_lists_arguments(self):
        dispatcher, _, _ = make_dispatcher()
        schema = dispatcher.list_tools()[0]["inputSchema"]
        self.assertIn("resource_ids", schema["properties"])
        self.assertIn("year", schema["properties"])


class CallValidationTests(unittest.TestCase):
    def setUp(self):
        self.dispatcher, self.history, _ = make_dispatcher()

    def test_unknown_capability(self):
        with self.assertRaises(UnknownCapabilityError) as ctx:
            self.dispatcher.call("collector.nope", {})
        self.assertIn("collector.nope", str(ctx.exception))
        self.assertIsInstance(ctx.exception, ValidationError)

    def test_missing_arguments_default_to_empty(self):
        result = self.dispatcher.call("collector.status", None)
        self.assertEqual(result, {"runs": [], "count": 0})

    def test_wrong_types_are_rejected(self):
        with self.assertRaises(ValidationError):
            self.dispatcher.call("collector.run", {"year": "2020"})
        with self.assertRaises(ValidationError):
            self.dispatcher.call("collector.run", {"resource_ids": "r1"})
        with self.assertRaises(ValidationError):
            self.dispatcher.call("collector.run", {"year": 0})
        with self.assertRaises(ValidationError):
            self.dispatcher.call("collector.get_collected", {"resource_id": 5})
        self.assertEqual(len(self.history), 0)

    def test_arguments_must_be_an_object(self):
        with self.assertRaises(ValidationError):
            self.dispatcher.call("collector.run", ["r1"])


class CallTests(unittest.TestCase):
    def setUp(self):
        self.dispatcher, self.history, self.rpc = make_dispatcher()

    def test_run_full_view(self):
        result = self.dispatcher.call("collector.run", {"resource_ids": ["r3", "r1"], "year": 2021})
        run = result["run"]
        self.assertEqual(run["status"], "completed")
        self.assertEqual(run["resources_requested"], 2)
        self.assertEqual(run["values_collected"], 4)
        self.assertEqual([v["resource_id"] for v in run["values"]], ["r1", "r1", "r3", "r3"])
        self.assertEqual(run["values"][0]["year"], 2021)

    def test_empty_filter_collects_everything(self):
        result = self.dispatcher.call("collector.run", {"resource_ids": ["", "  "]})
        self.assertEqual(result["run"]["resources_requested"], 3)

    def test_status_is_bounded_and_hides_values(self):
        for _ in range(12):
            self.dispatcher.call("collector.run", {})
        result = self.dispatcher.call("collector.status", {})
        self.assertEqual(result["count"], 10)
        self.assertEqual(result["runs"][-1]["id"], self.history.latest().id)
        for summary in result["runs"]:
            self.assertNotIn("values", summary)
            self.assertEqual(summary["values_collected"], 6)

    def test_list_catalog(self):
        result = self.dispatcher.call("collector.list_catalog", {})
        self.assertEqual(result["count"], 3)
        self.assertEqual(result["resources"][0]["id"], "r1")
        self.assertEqual(result["resources"][0]["indicator"], "IND.ONE")

    def test_get_collected_requires_a_run(self):
        with self.assertRaises(EmptyStateError):
            self.dispatcher.call("collector.get_collected", {})

    def test_get_collected_latest_and_filter(self):
        self.dispatcher.call("collector.run", {})
        result = self.dispatcher.call("collector.get_collected", {"resource_id": "r2", "run_id": " "})
        self.assertEqual(result["run_id"], self.history.latest().id)
        self.assertEqual(result["count"], 2)
        self.assertTrue(all(v["resource_id"] == "r2" for v in result["values"]))

    def test_get_collected_by_run_id(self):
        first = self.dispatcher.call("collector.run", {"resource_ids": ["r1"]})["run"]
        self.dispatcher.call("collector.run", {})
        result = self.dispatcher.call("collector.get_collected", {"run_id": first["id"]})
        self.assertEqual(result["run_id"], first["id"])
        self.assertEqual(result["count"], 2)
        with self.assertRaises(EmptyStateError):
            self.dispatcher.call("collector.get_collected", {"run_id": "run-missing"})

    def test_export_before_any_run(self):
        with self.assertRaises(EmptyStateError):
            self.dispatcher.call("collector.export_jsonld", {})

    def test_export_after_run(self):
        self.dispatcher.call("collector.run", {})
        doc = self.dispatcher.call("collector.export_jsonld", {"resource_id": "r1"})
        self.assertEqual(doc["@type"], "Dataset")
        self.assertEqual(doc["count"], 2)

    def test_publish_skips_empty_run(self):
        dispatcher, _, rpc = make_dispatcher(always_fail)
        run = dispatcher.call("collector.run", {})["run"]
        self.assertEqual(run["status"], "failed")
        result = dispatcher.call("collector.publish", {})
        self.assertEqual(result["status"], "skipped")
        self.assertEqual(len(rpc.calls), 0)

    def test_publish_uses_target_argument(self):
        self.dispatcher.call("collector.run", {})
        result = self.dispatcher.call("collector.publish", {"target_mcp_url": "https://x.example/mcp"})
        self.assertEqual(result["status"], "published")
        self.assertEqual(result["target_url"], "https://x.example/mcp")
        self.assertEqual(self.rpc.calls, [("https://x.example/mcp", "global.list_resources", {})])


if __name__ == "__main__":
    unittest.main()
