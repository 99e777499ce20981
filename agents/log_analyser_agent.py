# agents/log_analyser_agent.py
"""
Log Analyser Agent.

- Holds the tool registry (one-time analysis + schedule tools).
- generate(messages): sends the conversation to the LLM with tool definitions,
  runs whatever tools the model asks for, feeds results back, and returns the
  final reply plus every tool result.
- Tool failures are handed back to the model as {"error": ...} so it can ask
  the user for a token, a better endpoint, etc.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Any, List, Callable, Optional

from agents.cron_tools import create_schedule_tool, cancel_schedule_tool, list_schedules_tool
from agents.errors import LogAnalysisError, AuthRequired
from agents.log_analyser_tool import analyse_logs
from agents.prompts import AGENT_INSTRUCTIONS
from agents.schedule_manager import ScheduleManager

logger = logging.getLogger(__name__)

TOOL_DEFINITIONS = [
    {
        "type": "function",
        "function": {
            "name": "logAnalyserTool",
            "description": "Analyze logs from an endpoint for errors, warnings and performance issues. "
                           "REQUIRED: endpoint URL. OPTIONAL: timeRange in any natural language format, "
                           "authToken only if the user gave one or a previous call failed with 401/403.",
            "parameters": {
                "type": "object",
                "properties": {
                    "endpoint": {"type": "string", "description": "API endpoint URL to fetch logs from"},
                    "timeRange": {"type": "string", "description": "What the user said about time, verbatim"},
                    "authToken": {"type": "string", "description": "Bearer token for the log endpoint"},
                },
                "required": ["endpoint"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "createScheduleTool",
            "description": "Record a recurring log analysis for an endpoint at a natural-language interval.",
            "parameters": {
                "type": "object",
                "properties": {
                    "endpoint": {"type": "string", "description": "API endpoint URL to fetch logs from"},
                    "interval": {"type": "string", "description": 'e.g. "every 5 minutes", "daily at 9am"'},
                    "authToken": {"type": "string", "description": "Optional bearer token"},
                    "timeRange": {"type": "string", "description": 'Range analysed per run, default "last 1 hour"'},
                },
                "required": ["endpoint", "interval"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "cancelScheduleTool",
            "description": "Cancel a schedule by ID, every schedule of an endpoint, or all schedules.",
            "parameters": {
                "type": "object",
                "properties": {
                    "scheduleId": {"type": "string"},
                    "endpoint": {"type": "string"},
                    "cancelAll": {"type": "boolean"},
                },
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "listSchedulesTool",
            "description": "List all registered monitoring schedules.",
            "parameters": {"type": "object", "properties": {}},
        },
    },
]


@dataclass
class AgentResponse:
    text: str
    tool_results: List[Dict[str, Any]] = field(default_factory=list)


class LogAnalyserAgent:
    name = "Log Analyser Agent"

    def __init__(self, llm, schedules: Optional[ScheduleManager] = None, max_steps: int = 5):
        self.llm = llm
        self.schedules = schedules if schedules is not None else ScheduleManager()
        self.max_steps = max_steps
        self.tools: Dict[str, Callable[..., Dict[str, Any]]] = {
            "logAnalyserTool": self._run_analysis,
            "createScheduleTool": lambda **kw: create_schedule_tool(self.schedules, self.llm, **kw),
            "cancelScheduleTool": lambda **kw: cancel_schedule_tool(self.schedules, **kw),
            "listSchedulesTool": lambda **kw: list_schedules_tool(self.schedules),
        }

    def _run_analysis(self, endpoint: str, timeRange: Optional[str] = None,
                      authToken: Optional[str] = None) -> Dict[str, Any]:
        try:
            return analyse_logs(endpoint, timeRange, authToken, llm=self.llm)
        except AuthRequired as e:
            return {"error": str(e), "authRequired": True}
        except LogAnalysisError as e:
            return {"error": str(e)}

    def call_tool(self, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        tool = self.tools.get(name)
        if tool is None:
            return {"error": f"Unknown tool: {name}"}
        try:
            return tool(**arguments)
        except TypeError as e:
            # model sent arguments the tool does not take
            return {"error": f"Invalid arguments for {name}: {e}"}

    def generate(self, messages: List[Dict[str, Any]]) -> AgentResponse:
        conversation = [{"role": "system", "content": AGENT_INSTRUCTIONS}] + list(messages)
        tool_results: List[Dict[str, Any]] = []

        for _ in range(self.max_steps):
            reply = self.llm.chat(conversation, tools=TOOL_DEFINITIONS)
            calls = reply.get("tool_calls") or []
            if not calls:
                return AgentResponse(text=reply.get("content", ""), tool_results=tool_results)

            conversation.append({
                "role": "assistant",
                "content": reply.get("content") or None,
                "tool_calls": [
                    {"id": c["id"], "type": "function",
                     "function": {"name": c["name"], "arguments": json.dumps(c["arguments"])}}
                    for c in calls
                ],
            })
            for c in calls:
                logger.info("Agent calling %s", c["name"])
                result = self.call_tool(c["name"], c["arguments"])
                tool_results.append({"toolName": c["name"], "args": c["arguments"], "result": result})
                conversation.append({"role": "tool", "tool_call_id": c["id"], "content": json.dumps(result)})

        logger.warning("Agent stopped after %d tool steps without a final answer", self.max_steps)
        return AgentResponse(text="I could not finish this request within the allowed number of steps.",
                             tool_results=tool_results)
