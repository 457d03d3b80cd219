"""
core.api.openai_client

Thin wrapper around the OpenAI Chat Completions API for Briefdesk.

Used by:
  - core/brief/extractor.py (structured brief extraction)
  - core/brief/responder.py (continuation-mode replies)
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Type, Union

from pydantic import BaseModel
from openai import OpenAI

from configs.settings import settings


# -------------------------------------------------------------------
# Client + config
# -------------------------------------------------------------------

# Created on first use so that importing this module never requires
# OPENAI_API_KEY (tests and maintenance-only runs do not need it).
_client: Optional[OpenAI] = None

# Default model for Briefdesk (customizable via BRIEFDESK_OPENAI_MODEL)
DEFAULT_MODEL = settings.openai_model


def get_client() -> OpenAI:
    """Return the shared OpenAI client, creating it from settings."""
    global _client
    if _client is None:
        _client = OpenAI(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
        )
    return _client


# -------------------------------------------------------------------
# Internal helpers
# -------------------------------------------------------------------


def _extract_json_from_text(text: str) -> str:
    """
    Normalize model text output into a raw JSON string.

    Handles common patterns like Markdown ```json fenced blocks and
    extra prose around the JSON object by extracting the first JSON-like
    block from the text.
    """
    text = text.strip()

    # Strip Markdown code fences if present.
    if text.startswith("```"):
        lines = text.splitlines()
        if lines and lines[0].startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].startswith("```"):
            lines = lines[:-1]
        text = "\n".join(lines).strip()

    # Best-effort extraction of the first {...} block.
    if "{" in text and "}" in text:
        start = text.find("{")
        end = text.rfind("}")
        if start != -1 and end != -1 and end > start:
            return text[start : end + 1].strip()

    return text


# -------------------------------------------------------------------
# Public functions
# -------------------------------------------------------------------


def send_chat_to_gpt(
    messages: List[Dict[str, str]],
    *,
    model: Optional[str] = None,
    temperature: float = 0.0,
    max_tokens: Optional[int] = None,
) -> str:
    """
    Send a full chat transcript (system + user/assistant turns) and return
    the assistant text.

    Raises
    ------
    OpenAIError
        If the API call fails.
    RuntimeError
        If the response is empty.
    """
    kwargs: Dict[str, Any] = {
        "model": model or DEFAULT_MODEL,
        "messages": messages,
        "temperature": temperature,
    }
    if max_tokens is not None:
        kwargs["max_tokens"] = max_tokens

    completion = get_client().chat.completions.create(**kwargs)

    if not completion.choices:
        raise RuntimeError("Empty response from OpenAI API.")

    return completion.choices[0].message.content or ""


def send_request_to_gpt(
    prompt: str,
    *,
    structured_output: Union[bool, Type[BaseModel]] = False,
    model: Optional[str] = None,
    system_prompt: Optional[str] = None,
    temperature: float = 0.0,
) -> Any:
    """
    Send a prompt to the OpenAI API and return the response.

    Parameters
    ----------
    prompt : str
        The user prompt (full instruction text).
    structured_output : bool | Type[BaseModel]
        - False (default): return plain text string.
        - True: expect a JSON object and return raw text (caller parses).
        - Pydantic BaseModel subclass: ask the model to fill that schema and
          return an instance of that model.
    model : str, optional
        Override the default model name.
    system_prompt : str, optional
        Prepended as a system message.

    Returns
    -------
    Any
        - If structured_output is False or True: returns `str` (model text).
        - If structured_output is a BaseModel subclass: returns a BaseModel instance.

    Raises
    ------
    OpenAIError
        If the API call fails.
    RuntimeError
        If response is missing or malformed.
    """
    messages: List[Dict[str, str]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": prompt})

    text = send_chat_to_gpt(messages, model=model, temperature=temperature)

    # Case 1 + 2: caller wants raw text (and may parse JSON itself)
    if structured_output is False or structured_output is True:
        return text

    # Case 3: caller passed a Pydantic model type for structured output
    if isinstance(structured_output, type) and issubclass(structured_output, BaseModel):
        # We expect the model to output JSON; normalize and try to parse it
        cleaned_text = _extract_json_from_text(text)
        try:
            data = json.loads(cleaned_text)
        except json.JSONDecodeError as e:
            raise RuntimeError(f"Failed to parse JSON from model output: {e}\nRaw text: {text}")

        if not isinstance(data, dict):
            raise RuntimeError(f"Expected a JSON object from the model, got: {text}")

        return structured_output(**data)

    # Fallback: unknown structured_output type
    return text
