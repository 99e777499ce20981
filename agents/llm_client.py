"""
LLM client wrapper for the OpenAI chat-completions API.

Gives the agents two calls:
- completion(): prompt in, text out (time-range parsing, cron conversion, analysis)
- chat(): conversation + tool definitions in, reply text and requested tool calls out
"""

import os
import json
import logging
from typing import Optional, List, Dict, Union, Any
from openai import OpenAI
from dotenv import load_dotenv

from agents.config import LLM_CONFIG

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class OpenAIClient:
    """
    Thin wrapper over the OpenAI client.

    Every request carries an explicit timeout so an unresponsive model
    cannot hang an analysis forever. Errors are re-raised as RuntimeError
    and never retried.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        timeout: Optional[float] = None,
    ):
        """
        Args:
            api_key: OpenAI API key. If None, will use OPENAI_API_KEY env var
            model: Model identifier; defaults to OPENAI_MODEL env var or config.yaml llm.model
            temperature: Sampling temperature
            timeout: Per-request timeout in seconds

        Raises:
            ValueError: If no API key is provided or found in environment
        """
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            raise ValueError(
                "OpenAI API key is required. Set OPENAI_API_KEY environment "
                "variable or pass api_key parameter."
            )

        self.model = model or os.getenv("OPENAI_MODEL") or LLM_CONFIG.get("model", "gpt-4o-mini")
        self.temperature = temperature if temperature is not None else LLM_CONFIG.get("temperature", 0.2)
        self.timeout = timeout if timeout is not None else LLM_CONFIG.get("timeout", 60)
        self.client = OpenAI(api_key=self.api_key)

    def completion(self, messages: Union[str, Dict[str, str], List[Dict[str, str]]], **kwargs) -> str:
        """
        Generate a completion from the language model.

        Returns:
            str: The model's response content ("" if the model sent none)

        Raises:
            RuntimeError: If the API call fails
        """
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=self._normalize_messages(messages),
                temperature=self.temperature,
                timeout=self.timeout,
                **kwargs
            )
        except Exception as e:
            raise RuntimeError(f"Error generating completion: {str(e)}") from e
        return response.choices[0].message.content or ""

    def chat(self, messages: List[Dict[str, Any]], tools: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        """
        One chat turn with optional tool definitions.

        Returns:
            {"content": str, "tool_calls": [{"id", "name", "arguments": dict}]}
        """
        kwargs = {}
        if tools:
            kwargs["tools"] = tools
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                timeout=self.timeout,
                **kwargs
            )
        except Exception as e:
            raise RuntimeError(f"Error generating chat reply: {str(e)}") from e

        message = response.choices[0].message
        calls = []
        for call in message.tool_calls or []:
            try:
                arguments = json.loads(call.function.arguments or "{}")
            except json.JSONDecodeError:
                logger.warning("Model sent non-JSON arguments for tool %s", call.function.name)
                arguments = {}
            calls.append({"id": call.id, "name": call.function.name, "arguments": arguments})
        return {"content": message.content or "", "tool_calls": calls}

    def _normalize_messages(
        self,
        messages: Union[str, Dict[str, str], List[Dict[str, str]]]
    ) -> List[Dict[str, str]]:
        if isinstance(messages, str):
            return [{"role": "user", "content": messages}]
        elif isinstance(messages, dict):
            return [messages]
        elif isinstance(messages, list):
            return messages
        else:
            raise ValueError(f"Unsupported message format: {type(messages)}")
