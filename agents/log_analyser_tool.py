# agents/log_analyser_tool.py
"""
Log Analyser facade.

- Input: endpoint URL, optional natural-language time range, optional bearer token.
- Resolves the time range through the LLM into ISO from/to bounds.
- Fetches logs with an authenticated POST ?from=&to= (401/403 -> AuthRequired).
- Asks the LLM for a health classification and validates the JSON it returns.
- Output:
  {
    "status": "Healthy" | "Warning" | "Critical",
    "summary": "...",
    "recommendations": [...],
    "timeRange": {"from": ..., "to": ...},
    "analyzedAt": "..."
  }
The facade never re-derives the classification; it only checks its shape.
"""

import re
import json
import logging
import requests
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional, Literal
from pydantic import BaseModel, Field, ValidationError, field_validator

from agents.config import FETCH_TIMEOUT, RAW_TEXT_LIMIT
from agents.errors import AuthRequired, FetchFailed, ModelCallFailed, ParseFailure, TimeRangeParseError
from agents.prompts import time_range_prompt, analysis_prompt

logger = logging.getLogger(__name__)

# first {...} block for the time range, outermost block for the analysis
_FIRST_OBJECT = re.compile(r"\{[\s\S]*?\}")
_OUTER_OBJECT = re.compile(r"\{[\s\S]*\}")


class TimeRange(BaseModel):
    from_: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = None

    model_config = {"populate_by_name": True}


class LogAnalysis(BaseModel):
    """Shape the model must return."""

    status: Literal["Healthy", "Warning", "Critical"]
    summary: str = Field(min_length=10, max_length=500, description="Summary of the log analysis results")
    recommendations: List[str] = Field(default_factory=list, max_length=10)
    timeRange: TimeRange
    analyzedAt: str

    @field_validator("recommendations")
    @classmethod
    def validate_recommendations(cls, v: List[str]) -> List[str]:
        short = [r for r in v if len(r) < 5]
        if short:
            raise ValueError(f"recommendations must be at least 5 characters: {short}")
        return v

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


def _now_iso() -> str:
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def _is_iso(value: str) -> bool:
    if not isinstance(value, str):
        return False
    text = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    try:
        datetime.fromisoformat(text)
    except ValueError:
        return False
    return True


def parse_time_range(llm, time_range_text: Optional[str] = None) -> Dict[str, Optional[str]]:
    """Ask the model to turn e.g. "last 2 hours" into {"from": iso, "to": iso}."""
    if not time_range_text:
        return {"from": None, "to": None}

    try:
        raw = llm.completion(time_range_prompt(time_range_text, datetime.now(timezone.utc)))
    except RuntimeError as e:
        raise ModelCallFailed(f'Failed to parse time range "{time_range_text}": {e}') from e
    m = _FIRST_OBJECT.search(raw or "")
    if not m:
        raise TimeRangeParseError(f'Failed to parse time range "{time_range_text}": no JSON found',
                                  raw, RAW_TEXT_LIMIT)
    try:
        parsed = json.loads(m.group(0))
    except json.JSONDecodeError as e:
        raise TimeRangeParseError(f'Failed to parse time range "{time_range_text}": {e}',
                                  raw, RAW_TEXT_LIMIT) from e

    start, end = parsed.get("from"), parsed.get("to")
    if not (_is_iso(start) and _is_iso(end)):
        raise TimeRangeParseError(f'Failed to parse time range "{time_range_text}": invalid from/to',
                                  raw, RAW_TEXT_LIMIT)
    return {"from": start, "to": end}


def get_logs(url: str, time_range: Dict[str, Optional[str]], auth_token: Optional[str] = None,
             timeout: float = FETCH_TIMEOUT) -> Any:
    """POST to the log source and return its decoded JSON body."""
    headers = {"Content-Type": "application/json"}
    if auth_token:
        headers["Authorization"] = f"Bearer {auth_token}"
    # absent bounds travel as the literal "null"; the log API treats that as no bound
    params = {
        "from": time_range.get("from") or "null",
        "to": time_range.get("to") or "null",
    }

    try:
        resp = requests.post(url, headers=headers, params=params, timeout=timeout)
    except requests.RequestException as e:
        raise FetchFailed(f"Failed to fetch logs from {url}: {e}") from e

    if resp.status_code in (401, 403):
        raise AuthRequired(
            f"Authentication required: {resp.status_code} {resp.reason}. Please provide a valid auth token.",
            status_code=resp.status_code,
        )
    if not resp.ok:
        raise FetchFailed(f"Failed to fetch logs: {resp.status_code} {resp.reason}",
                          status_code=resp.status_code)

    try:
        return resp.json()
    except ValueError as e:
        raise FetchFailed(f"Log source {url} did not return JSON: {e}",
                          status_code=resp.status_code) from e


def parse_analysis(raw: str) -> Dict[str, Any]:
    """Pull the JSON object out of the model reply and validate it."""
    m = _OUTER_OBJECT.search(raw or "")
    if not m:
        raise ParseFailure("Failed to parse agent response: no JSON found", raw, RAW_TEXT_LIMIT)
    try:
        data = json.loads(m.group(0))
    except json.JSONDecodeError as e:
        raise ParseFailure(f"Failed to parse agent response: {e}", raw, RAW_TEXT_LIMIT) from e

    try:
        analysis = LogAnalysis.model_validate(data)
    except ValidationError as e:
        raise ParseFailure(f"Agent response does not match the analysis schema: {e}",
                           raw, RAW_TEXT_LIMIT) from e
    return analysis.to_dict()


def analyse_logs(endpoint: str, time_range_text: Optional[str] = None, auth_token: Optional[str] = None,
                 llm=None) -> Dict[str, Any]:
    """High-level helper: resolve range, fetch, classify, validate."""
    if llm is None:
        from agents.llm_client import OpenAIClient
        llm = OpenAIClient()

    time_range = parse_time_range(llm, time_range_text)
    logs_data = get_logs(endpoint, time_range, auth_token=auth_token)
    count = len(logs_data) if isinstance(logs_data, list) else 0
    logger.info("Fetched %d log entries from %s (range %s -> %s)",
                count, endpoint, time_range["from"], time_range["to"])

    prompt = analysis_prompt(endpoint, time_range, json.dumps(logs_data, indent=2), count, _now_iso())
    try:
        raw = llm.completion(prompt)
    except RuntimeError as e:
        raise ModelCallFailed(f"Failed to analyse logs from {endpoint}: {e}") from e
    return parse_analysis(raw)
