"""
Log monitoring workflow: the unit of work an external cron triggers.

Steps:
 1. analyse   - run the log analyser for the endpoint (default range "last 1 hour")
 2. handle    - log the outcome; on Critical, raise an alert (log + optional Slack webhook)
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Any, Optional

import requests

from agents.config import DEFAULT_SCHEDULE_TIME_RANGE
from agents.log_analyser_tool import analyse_logs

logger = logging.getLogger("workflow")


def notify_slack(webhook: str, text: str):
    try:
        requests.post(webhook, json={"text": text}, timeout=5)
        logger.info("Slack notification sent")
    except requests.RequestException as e:
        logger.error("Slack notify failed: %s", e)


def analyse_step(endpoint: str, auth_token: Optional[str] = None, time_range: Optional[str] = None,
                 llm=None) -> Dict[str, Any]:
    return analyse_logs(endpoint, time_range or DEFAULT_SCHEDULE_TIME_RANGE, auth_token, llm=llm)


def handle_result_step(endpoint: str, analysis: Dict[str, Any], slack_webhook: Optional[str] = None) -> Dict[str, Any]:
    stamp = datetime.now(timezone.utc).isoformat()
    logger.info("[%s] Log analysis complete for %s: status=%s summary=%s",
                stamp, endpoint, analysis["status"], analysis["summary"])

    if analysis["status"] == "Critical":
        logger.error("CRITICAL ALERT for %s: %s | recommendations=%s",
                     endpoint, analysis["summary"], analysis["recommendations"])
        if slack_webhook:
            notify_slack(slack_webhook, f"CRITICAL: {endpoint} - {analysis['summary']}")

    return {
        "status": analysis["status"],
        "summary": analysis["summary"],
        "recommendations": analysis["recommendations"],
        "logged": True,
    }


def run_monitoring_workflow(endpoint: str, auth_token: Optional[str] = None, time_range: Optional[str] = None,
                            llm=None, slack_webhook: Optional[str] = None) -> Dict[str, Any]:
    if not endpoint:
        raise ValueError("Input data not found: endpoint is required")
    analysis = analyse_step(endpoint, auth_token, time_range, llm=llm)
    return handle_result_step(endpoint, analysis, slack_webhook=slack_webhook)
