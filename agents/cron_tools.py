# agents/cron_tools.py
"""
Schedule tools exposed to the agent. They never raise; every outcome is a
result dict with a `success` flag the caller (or the model) can branch on.
"""

from typing import Dict, Any, Optional

from agents.errors import ScheduleError
from agents.schedule_manager import ScheduleManager, parse_to_cron_expression


def create_schedule_tool(schedules: ScheduleManager, llm, endpoint: str, interval: str,
                         authToken: Optional[str] = None, timeRange: Optional[str] = None) -> Dict[str, Any]:
    try:
        cron_expression = parse_to_cron_expression(interval, llm)
    except ScheduleError as e:
        return {"success": False, "error": str(e)}
    result = schedules.create_schedule(endpoint, interval, cron_expression,
                                       auth_token=authToken, time_range=timeRange)
    return {"success": True, **result}


def cancel_schedule_tool(schedules: ScheduleManager, scheduleId: Optional[str] = None,
                         endpoint: Optional[str] = None, cancelAll: bool = False) -> Dict[str, Any]:
    if cancelAll:
        return schedules.cancel_all_schedules()
    if scheduleId:
        return schedules.cancel_schedule(scheduleId)
    if endpoint:
        return schedules.cancel_schedules_by_endpoint(endpoint)
    return {
        "success": False,
        "message": "Please provide either scheduleId, endpoint, or set cancelAll to true",
    }


def list_schedules_tool(schedules: ScheduleManager) -> Dict[str, Any]:
    items = schedules.list_schedules()
    if not items:
        return {"success": True, "message": "No active schedules", "schedules": []}
    return {"success": True, "message": f"Found {len(items)} active schedule(s)", "schedules": items}
