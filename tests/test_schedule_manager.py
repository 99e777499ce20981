# tests/test_schedule_manager.py
import unittest
from agents.cron_tools import create_schedule_tool, cancel_schedule_tool, list_schedules_tool
from agents.errors import ScheduleError
from agents.schedule_manager import ScheduleManager, parse_to_cron_expression
from fake_llm import ScriptedLLM

ENDPOINT = "https://x/logs"


class TestScheduleManager(unittest.TestCase):
    def setUp(self):
        self.schedules = ScheduleManager()

    def test_lifecycle(self):
        created = self.schedules.create_schedule(ENDPOINT, "every 30 minutes", "*/30 * * * *")
        listed = self.schedules.list_schedules()
        self.assertEqual(len(listed), 1)
        self.assertEqual(listed[0]["endpoint"], ENDPOINT)
        self.assertEqual(listed[0]["id"], created["id"])

        self.assertTrue(self.schedules.cancel_schedule(created["id"])["success"])
        self.assertEqual(self.schedules.list_schedules(), [])

    def test_cancel_unknown_id(self):
        res = self.schedules.cancel_schedule("schedule-99-0")
        self.assertFalse(res["success"])
        self.assertIn("not found", res["message"])

    def test_ids_unique_and_defaults(self):
        a = self.schedules.create_schedule(ENDPOINT, "hourly", "0 * * * *")
        b = self.schedules.create_schedule(ENDPOINT, "hourly", "0 * * * *")
        self.assertNotEqual(a["id"], b["id"])
        self.assertTrue(a["id"].startswith("schedule-1-"))
        config = self.schedules.get_schedule(a["id"])
        self.assertEqual(config.timeRange, "last 1 hour")
        self.assertIn("0 * * * *", a["message"])

    def test_auth_token_kept_but_not_listed(self):
        created = self.schedules.create_schedule(ENDPOINT, "daily", "0 0 * * *", auth_token="tok")
        self.assertEqual(self.schedules.get_schedule(created["id"]).authToken, "tok")
        self.assertNotIn("authToken", self.schedules.list_schedules()[0])

    def test_cancel_by_endpoint(self):
        self.schedules.create_schedule(ENDPOINT, "hourly", "0 * * * *")
        self.schedules.create_schedule(ENDPOINT, "daily", "0 0 * * *")
        self.schedules.create_schedule("https://y/logs", "daily", "0 0 * * *")
        res = self.schedules.cancel_schedules_by_endpoint(ENDPOINT)
        self.assertEqual(res["cancelledCount"], 2)
        self.assertEqual([s["endpoint"] for s in self.schedules.list_schedules()], ["https://y/logs"])
        self.assertFalse(self.schedules.cancel_schedules_by_endpoint(ENDPOINT)["success"])

    def test_cancel_all(self):
        self.assertEqual(self.schedules.cancel_all_schedules()["cancelledCount"], 0)
        self.schedules.create_schedule(ENDPOINT, "hourly", "0 * * * *")
        self.schedules.create_schedule(ENDPOINT, "daily", "0 0 * * *")
        res = self.schedules.cancel_all_schedules()
        self.assertTrue(res["success"])
        self.assertEqual(res["cancelledCount"], 2)
        self.assertEqual(self.schedules.list_schedules(), [])

    def test_registries_are_independent(self):
        other = ScheduleManager()
        self.schedules.create_schedule(ENDPOINT, "hourly", "0 * * * *")
        self.assertEqual(other.list_schedules(), [])


class TestCronTools(unittest.TestCase):
    def setUp(self):
        self.schedules = ScheduleManager()

    def test_parse_to_cron_strips_quotes(self):
        llm = ScriptedLLM(completions=["`*/30 * * * *`\n"])
        self.assertEqual(parse_to_cron_expression("every 30 minutes", llm), "*/30 * * * *")

    def test_parse_to_cron_model_failure(self):
        llm = ScriptedLLM(completions=[RuntimeError("timeout")])
        with self.assertRaises(ScheduleError):
            parse_to_cron_expression("every 30 minutes", llm)

    def test_create_tool(self):
        llm = ScriptedLLM(completions=['"0 9 * * *"'])
        res = create_schedule_tool(self.schedules, llm, endpoint=ENDPOINT, interval="daily at 9am",
                                   timeRange="last 24 hours")
        self.assertTrue(res["success"])
        self.assertEqual(res["cronExpression"], "0 9 * * *")
        self.assertEqual(self.schedules.get_schedule(res["id"]).timeRange, "last 24 hours")

    def test_create_tool_reports_failure(self):
        llm = ScriptedLLM(completions=["   "])
        res = create_schedule_tool(self.schedules, llm, endpoint=ENDPOINT, interval="sometimes")
        self.assertFalse(res["success"])
        self.assertIn("error", res)
        self.assertEqual(self.schedules.list_schedules(), [])

    def test_cancel_tool_dispatch(self):
        a = self.schedules.create_schedule(ENDPOINT, "hourly", "0 * * * *")
        self.assertFalse(cancel_schedule_tool(self.schedules)["success"])
        self.assertTrue(cancel_schedule_tool(self.schedules, scheduleId=a["id"])["success"])
        self.schedules.create_schedule(ENDPOINT, "hourly", "0 * * * *")
        self.assertEqual(cancel_schedule_tool(self.schedules, endpoint=ENDPOINT)["cancelledCount"], 1)
        self.schedules.create_schedule(ENDPOINT, "hourly", "0 * * * *")
        self.assertEqual(cancel_schedule_tool(self.schedules, cancelAll=True)["cancelledCount"], 1)

    def test_list_tool(self):
        self.assertEqual(list_schedules_tool(self.schedules)["message"], "No active schedules")
        self.schedules.create_schedule(ENDPOINT, "hourly", "0 * * * *")
        res = list_schedules_tool(self.schedules)
        self.assertEqual(res["message"], "Found 1 active schedule(s)")
        self.assertEqual(len(res["schedules"]), 1)


if __name__ == "__main__":
    unittest.main()
