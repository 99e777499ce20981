"""
Agent server for the log analyser (development/demo).

Routes:
 - POST /a2a/agent/<agent_id>                  A2A (JSON-RPC 2.0) chat with an agent
 - POST /api/workflows/log-monitoring-workflow  run the monitoring workflow once
                                                (point your external cron here)
 - GET  /api/schedules                          registered schedules

Usage:
 - python -m tools.orchestrator --server
 - python -m tools.orchestrator --endpoint http://localhost:4000/api/logs --time-range "last 2 hours"
"""

import argparse
import json
import logging
import os
import uuid
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional

from flask import Flask, request, jsonify

from agents.config import ORCHESTRATOR_CONFIG
from agents.errors import LogAnalysisError
from agents.log_analyser_agent import LogAnalyserAgent
from agents.schedule_manager import ScheduleManager
from tools.monitoring_workflow import run_monitoring_workflow

logger = logging.getLogger("orchestrator")


def _rpc_error(request_id, code: int, message: str, http_status: int, data: Optional[Dict] = None):
    error = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return jsonify({"jsonrpc": "2.0", "id": request_id, "error": error}), http_status


def _part_text(part: Dict[str, Any]) -> str:
    if part.get("kind") == "text":
        return part.get("text") or ""
    if part.get("kind") == "data":
        return json.dumps(part.get("data"))
    return ""


def _a2a_part(part: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "kind": part.get("kind") or "text",
        "text": part.get("text") or "",
        "data": part.get("data"),
        "file_url": part.get("file_url"),
    }


def build_a2a_result(agent_id: str, messages: List[Dict[str, Any]], reply_text: str,
                     tool_results: List[Dict[str, Any]], context_id: Optional[str],
                     task_id: Optional[str], metadata: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Wrap an agent reply in an A2A task: status message, artifacts, history."""
    reply_parts = [{"kind": "text", "text": reply_text, "data": None, "file_url": None}]
    artifacts = [{"artifactId": str(uuid.uuid4()), "name": f"{agent_id}Response", "parts": reply_parts}]
    if tool_results:
        artifacts.append({
            "artifactId": str(uuid.uuid4()),
            "name": "ToolResults",
            "parts": [{"kind": "data", "text": "", "data": r, "file_url": None} for r in tool_results],
        })

    final_task_id = task_id or str(uuid.uuid4())
    reply_message = {
        "kind": "message",
        "role": "agent",
        "parts": reply_parts,
        "messageId": str(uuid.uuid4()),
        "taskId": final_task_id,
        "metadata": metadata,
    }
    history = [
        {
            "kind": "message",
            "role": m.get("role"),
            "parts": [_a2a_part(p) for p in m.get("parts") or []],
            "messageId": m.get("messageId") or str(uuid.uuid4()),
            "taskId": m.get("taskId") or final_task_id,
            "metadata": m.get("metadata"),
        }
        for m in messages
    ]
    history.append(reply_message)

    return {
        "id": final_task_id,
        "contextId": context_id or str(uuid.uuid4()),
        "status": {
            "state": "completed",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "message": reply_message,
        },
        "artifacts": artifacts,
        "history": history,
        "kind": "task",
    }


def create_app(llm=None, schedules: Optional[ScheduleManager] = None,
               slack_webhook: Optional[str] = None) -> Flask:
    if llm is None:
        from agents.llm_client import OpenAIClient
        llm = OpenAIClient()
    schedules = schedules if schedules is not None else ScheduleManager()
    agents = {"logAnalyserAgent": LogAnalyserAgent(llm, schedules)}

    app = Flask("log-analyser-orchestrator")
    app.config["AGENTS"] = agents
    app.config["SCHEDULES"] = schedules

    @app.route("/a2a/agent/<agent_id>", methods=["POST"])
    def a2a_agent(agent_id):
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            body = {}
        request_id = body.get("id")
        if body.get("jsonrpc") != "2.0" or not request_id:
            return _rpc_error(request_id, -32600,
                              'Invalid Request: jsonrpc must be "2.0" and id is required', 400)

        agent = agents.get(agent_id)
        if agent is None:
            return _rpc_error(request_id, -32602, f"Agent '{agent_id}' not found", 404)

        params = body.get("params") or {}
        context_id = params.get("contextId")
        task_id = params.get("taskId")
        metadata = params.get("metadata")
        if params.get("message"):
            message = params["message"]
            messages = [message]
            context_id = message.get("contextId") or context_id
            task_id = message.get("taskId") or task_id
            metadata = message.get("metadata") or metadata
        elif isinstance(params.get("messages"), list):
            messages = params["messages"]
        else:
            return _rpc_error(request_id, -32602, "Invalid params: message or messages is required", 400)

        chat = [
            {"role": "assistant" if m.get("role") == "agent" else (m.get("role") or "user"),
             "content": "\n".join(_part_text(p) for p in m.get("parts") or [])}
            for m in messages
        ]

        config = params.get("configuration") or {}
        if config.get("blocking") is False and (config.get("pushNotificationConfig") or {}).get("url"):
            logger.info("Non-blocking request with webhook %s answered synchronously",
                        config["pushNotificationConfig"]["url"])

        try:
            response = agent.generate(chat)
        except RuntimeError as e:
            logger.exception("A2A agent route error")
            return _rpc_error(None, -32603, "Internal error", 500, data={"details": str(e)})

        result = build_a2a_result(agent_id, messages, response.text, response.tool_results,
                                  context_id, task_id, metadata)
        return jsonify({"jsonrpc": "2.0", "id": request_id, "result": result, "error": None})

    @app.route("/api/workflows/log-monitoring-workflow", methods=["POST"])
    def monitoring_workflow():
        payload = request.get_json(silent=True) or {}
        endpoint = payload.get("endpoint") if isinstance(payload, dict) else None
        if not endpoint:
            return jsonify({"error": "endpoint is required"}), 400
        try:
            result = run_monitoring_workflow(endpoint, payload.get("authToken"), payload.get("timeRange"),
                                             llm=llm, slack_webhook=slack_webhook)
        except LogAnalysisError as e:
            logger.error("Monitoring workflow failed for %s: %s", endpoint, e)
            return jsonify({"error": str(e)}), 502
        return jsonify(result)

    @app.route("/api/schedules", methods=["GET"])
    def list_schedules():
        return jsonify(schedules.list_schedules())

    return app


def run_server_mode(listen_port: int, slack_webhook: Optional[str] = None):
    app = create_app(slack_webhook=slack_webhook or os.environ.get("SLACK_WEBHOOK"))
    logger.info("Starting orchestrator HTTP server on port %d", listen_port)
    app.run(host=ORCHESTRATOR_CONFIG.get("host", "0.0.0.0"), port=listen_port)


def main():
    logging.basicConfig(level=logging.INFO, format="[%(asctime)s] [%(levelname)s] %(message)s")
    parser = argparse.ArgumentParser()
    parser.add_argument("--server", action="store_true", help="Run as HTTP server (default when no --endpoint)")
    parser.add_argument("--port", type=int, default=int(os.environ.get("ORCHESTRATOR_PORT",
                                                                    ORCHESTRATOR_CONFIG.get("port", 4111))))
    parser.add_argument("--endpoint", help="Run the monitoring workflow once against this log endpoint", default=None)
    parser.add_argument("--time-range", help='Natural language range, default "last 1 hour"', default=None)
    parser.add_argument("--auth-token", help="Bearer token for the log endpoint (optional)", default=None)
    parser.add_argument("--slack-webhook", help="Slack webhook URL for Critical alerts (optional)", default=None)
    args = parser.parse_args()

    if args.endpoint and not args.server:
        try:
            res = run_monitoring_workflow(args.endpoint, args.auth_token, args.time_range,
                                          slack_webhook=args.slack_webhook)
        except LogAnalysisError as e:
            logger.error("Monitoring workflow failed: %s", e)
            raise SystemExit(1)
        print(json.dumps(res, indent=2))
        return

    run_server_mode(args.port, args.slack_webhook)


if __name__ == "__main__":
    main()
