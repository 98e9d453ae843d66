"""Interfaces for the optional AI completion capability."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class CompletionClient(Protocol):
    """Protocol for pluggable completion backends.

    Implementations are unreliable by assumption: a call may raise, or
    answer with something other than the requested JSON.
    """

    def complete(self, prompt: str, *, schema_hint: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        ...


class StaticCompletionClient:
    """Simple in-memory implementation for tests and offline usage."""

    def __init__(self, responses: Dict[str, Dict[str, Any]], default: Optional[Dict[str, Any]] = None):
        self._responses = responses
        self._default = default
        self.prompts: list[str] = []

    def complete(self, prompt: str, *, schema_hint: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        self.prompts.append(prompt)
        for marker, response in self._responses.items():
            if marker.lower() in prompt.lower():
                return response
        if self._default is not None:
            return self._default
        raise ValueError("No canned completion matches the prompt")


def parse_json_object(raw_response: str) -> Dict[str, Any]:
    """Parse a JSON object out of a model response.

    Code fences are tolerated, as is chatter around the object.
    """

    data = raw_response.strip()
    if data.startswith("```"):
        data = data.strip("`").strip()
        if data.lower().startswith("json"):
            data = data[4:].strip()

    try:
        payload = json.loads(data)
    except json.JSONDecodeError:
        start = data.find("{")
        end = data.rfind("}")
        if start != -1 and end != -1 and end > start:
            try:
                payload = json.loads(data[start : end + 1])
            except json.JSONDecodeError as exc:
                raise ValueError("Completion response is not valid JSON") from exc
        else:
            raise ValueError("Completion response is not valid JSON")

    if not isinstance(payload, dict):
        raise ValueError("Completion response must be a JSON object")
    return payload


class OpenAICompletionClient:
    """Routes JSON completion prompts to the OpenAI API."""

    def __init__(self, model: str = "gpt-4o-mini", *, api_key: Optional[str] = None, temperature: float = 0.0,
                 timeout_seconds: Optional[float] = None):
        self.model = model
        self.temperature = temperature
        self._client = self._build_client(api_key, timeout_seconds)

    def _build_client(self, api_key: Optional[str], timeout_seconds: Optional[float]):
        key = api_key or os.getenv("OPENAI_API_KEY")
        if not key:
            raise RuntimeError("OPENAI_API_KEY environment variable is not set.")
        try:
            from openai import OpenAI  # type: ignore
        except ImportError as exc:
            raise RuntimeError("Install the 'openai' package to enable AI-assisted comparison.") from exc
        # retries are owned by the caller
        return OpenAI(api_key=key, timeout=timeout_seconds, max_retries=0)

    def complete(self, prompt: str, *, schema_hint: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        system = (
            "You compare a generated news article against its source material. "
            "Always respond with a single JSON object."
        )
        if schema_hint:
            system += f" The object must follow this shape: {json.dumps(schema_hint)}"
        response = self._client.chat.completions.create(
            model=self.model,
            temperature=self.temperature,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
        )
        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise RuntimeError("No response from OpenAI")
        logger.debug("OpenAI response: %s", content)
        return parse_json_object(content)
