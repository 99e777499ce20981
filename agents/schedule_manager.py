# agents/schedule_manager.py
"""
Schedule registry for recurring log analyses.

This is bookkeeping only: it stores what the user asked to monitor and the
cron expression for it. Nothing here runs on a timer. The cron expression
has to be wired into the deployment platform (Vercel cron, AWS EventBridge,
Inngest, ...) pointing at the log-monitoring workflow endpoint.
Schedules live in process memory and are gone after a restart.
"""

import time
import logging
import threading
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional

from agents.config import DEFAULT_SCHEDULE_TIME_RANGE
from agents.errors import ScheduleError
from agents.prompts import cron_prompt

logger = logging.getLogger(__name__)

_UNTRACKED_NOTE = (
    "Note: This only removes the schedule(s) from this agent's tracking. You must also remove "
    "the corresponding cron job from your deployment platform to stop the actual execution."
)


@dataclass
class ScheduleConfig:
    id: str
    endpoint: str
    interval: str
    cronExpression: str
    createdAt: str
    authToken: Optional[str] = None
    timeRange: Optional[str] = None

    def public(self) -> Dict[str, Any]:
        """Listing view; the auth token is never echoed back."""
        data = asdict(self)
        data.pop("authToken")
        return data


def parse_to_cron_expression(interval: str, llm) -> str:
    """Ask the model to convert "every 30 minutes" style text to a cron expression."""
    try:
        raw = llm.completion(cron_prompt(interval, datetime.now(timezone.utc)))
    except RuntimeError as e:
        raise ScheduleError(f"Failed to create schedule: {e}") from e
    expression = (raw or "").strip().strip("`'\"").strip()
    for ch in "`'\"":
        expression = expression.replace(ch, "")
    if not expression:
        raise ScheduleError(f'Failed to create schedule: no cron expression for "{interval}"')
    return expression


def activation_message(config: ScheduleConfig) -> str:
    cron = config.cronExpression
    return f"""Schedule created successfully! Schedule ID: {config.id}.

To activate this schedule, set up a cron job or scheduled trigger on your deployment platform:

Option 1: Vercel Cron
Add to vercel.json:
{{
  "crons": [{{
    "path": "/api/workflows/log-monitoring-workflow",
    "schedule": "{cron}"
  }}]
}}

Option 2: AWS EventBridge
Create an EventBridge rule with schedule expression: cron({cron})

Option 3: Inngest (or any workflow runner)
POST {{"endpoint": "{config.endpoint}"}} to /api/workflows/log-monitoring-workflow on "{cron}".

The schedule will monitor {config.endpoint} {config.interval} ({cron})."""


class ScheduleManager:
    """One registry per process (or per test); pass it to whatever needs it."""

    def __init__(self):
        self._schedules: Dict[str, ScheduleConfig] = {}
        self._counter = 0
        self._lock = threading.Lock()

    def create_schedule(self, endpoint: str, interval: str, cron_expression: str,
                        auth_token: Optional[str] = None, time_range: Optional[str] = None) -> Dict[str, Any]:
        with self._lock:
            self._counter += 1
            schedule_id = f"schedule-{self._counter}-{int(time.time() * 1000)}"
            config = ScheduleConfig(
                id=schedule_id,
                endpoint=endpoint,
                interval=interval,
                cronExpression=cron_expression,
                createdAt=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
                authToken=auth_token,
                timeRange=time_range or DEFAULT_SCHEDULE_TIME_RANGE,
            )
            self._schedules[schedule_id] = config

        logger.info("Registered schedule %s for %s (%s)", schedule_id, endpoint, cron_expression)
        return {
            "id": schedule_id,
            "cronExpression": cron_expression,
            "message": activation_message(config),
        }

    def cancel_schedule(self, schedule_id: str) -> Dict[str, Any]:
        with self._lock:
            config = self._schedules.pop(schedule_id, None)
        if config is None:
            return {
                "success": False,
                "message": f"Schedule {schedule_id} not found. Use listSchedules to see active schedules.",
            }
        return {
            "success": True,
            "message": f"Schedule {schedule_id} removed successfully. It was monitoring "
                       f"{config.endpoint} {config.interval}.\n\n{_UNTRACKED_NOTE}",
        }

    def cancel_schedules_by_endpoint(self, endpoint: str) -> Dict[str, Any]:
        with self._lock:
            ids = [s.id for s in self._schedules.values() if s.endpoint == endpoint]
            for schedule_id in ids:
                del self._schedules[schedule_id]
        if not ids:
            return {
                "success": False,
                "message": f"No schedules found for endpoint: {endpoint}",
                "cancelledCount": 0,
            }
        return {
            "success": True,
            "message": f"Cancelled {len(ids)} schedule(s) for {endpoint}.\n\n{_UNTRACKED_NOTE}",
            "cancelledCount": len(ids),
        }

    def cancel_all_schedules(self) -> Dict[str, Any]:
        with self._lock:
            count = len(self._schedules)
            self._schedules.clear()
        if count == 0:
            return {"success": False, "message": "No active schedules to cancel", "cancelledCount": 0}
        return {
            "success": True,
            "message": f"All {count} schedule(s) removed successfully.\n\n{_UNTRACKED_NOTE}",
            "cancelledCount": count,
        }

    def list_schedules(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [s.public() for s in self._schedules.values()]

    def get_schedule(self, schedule_id: str) -> Optional[ScheduleConfig]:
        with self._lock:
            return self._schedules.get(schedule_id)
