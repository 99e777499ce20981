# agents/config.py
import os
import yaml


def load_config(path="config.yaml"):
    if os.path.exists(path):
        with open(path, "r") as f:
            return yaml.safe_load(f) or {}
    return {}

CONFIG = load_config()
LLM_CONFIG = CONFIG.get("llm", {})
ANALYSER_CONFIG = CONFIG.get("analyser", {})
ORCHESTRATOR_CONFIG = CONFIG.get("orchestrator", {})

FETCH_TIMEOUT = ANALYSER_CONFIG.get("fetch_timeout", 30)
DEFAULT_SCHEDULE_TIME_RANGE = ANALYSER_CONFIG.get("default_schedule_time_range", "last 1 hour")
RAW_TEXT_LIMIT = ANALYSER_CONFIG.get("raw_text_limit", 500)
