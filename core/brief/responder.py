"""
core/brief/responder.py

Assistant replies for briefing conversations, in two disjoint modes:

- completion: generate_summary_message() renders the captured brief from a
  fixed template, so the client sees exactly what was stored
- continuation: ResponseGenerator.generate() asks the generation backend
  for the next question, steered towards the fields that are still missing
"""

from __future__ import annotations

import logging
from datetime import timezone
from typing import Any, Dict, List, Optional, Protocol, Sequence

from configs.settings import settings
from core.api import openai_client
from exceptions.exceptions import GenerationError
from .models import Brief
from .schema import BriefSchema, PRIORITY_LABELS


logger = logging.getLogger(__name__)

CONTEXT_PREVIEW_CHARS = 200


# ---------------------------------------------------------------------------
# Completion mode
# ---------------------------------------------------------------------------


def _format_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _attribute_label(name: str) -> str:
    return name.replace("_", " ").capitalize()


def generate_summary_message(brief: Brief, schema: Optional[BriefSchema] = None) -> str:
    """Render the deterministic summary shown once a brief is complete."""
    schema = schema or BriefSchema()
    category = schema.get_category(brief.category)

    summary = "Here's what I've captured:\n\n"
    summary += f"**{brief.title}**\n\n"
    summary += f"{brief.description}\n\n"
    summary += f"**Category:** {schema.category_label(brief.category)}\n"
    summary += f"**Priority:** {PRIORITY_LABELS.get(brief.priority, brief.priority)}\n"

    if brief.deadline is not None:
        deadline = brief.deadline.astimezone(timezone.utc)
        summary += f"**Deadline:** {deadline.strftime('%Y-%m-%d %H:%M UTC')}\n"

    if category is not None and category.attributes:
        details = [
            (spec.name, brief.attributes[spec.name])
            for spec in category.attributes
            if spec.name in brief.attributes
        ]
        if details:
            summary += "\n**Details:**\n"
            for name, value in details:
                summary += f"• {_attribute_label(name)}: {_format_value(value)}\n"

    if brief.key_requirements:
        summary += "\n**Key Requirements:**\n"
        for requirement in brief.key_requirements:
            summary += f"• {requirement}\n"

    if brief.deliverables:
        summary += "\n**Deliverables:**\n"
        for deliverable in brief.deliverables:
            summary += f"• {deliverable}\n"

    if brief.estimated_hours:
        summary += f"\n**Estimated Time:** {_format_value(brief.estimated_hours)} hours\n"

    summary += "\nDoes this look right? You can submit or start over."
    return summary


# ---------------------------------------------------------------------------
# Continuation mode
# ---------------------------------------------------------------------------


class GenerationBackend(Protocol):
    """Produces the next assistant message from a chat transcript."""

    def generate(self, messages: List[Dict[str, str]]) -> str:
        ...


class OpenAIChatBackend:
    """GenerationBackend backed by openai_client.send_chat_to_gpt."""

    def __init__(
        self,
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 300,
    ) -> None:
        self.model = model or settings.openai_model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def generate(self, messages: List[Dict[str, str]]) -> str:
        return openai_client.send_chat_to_gpt(
            messages,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )


BASE_SYSTEM_PROMPT = """You are a helpful briefing assistant for a virtual assistant service. Your job is to have a natural conversation with the client to understand their task requirements.

## Your Role
- Ask clarifying questions ONE at a time
- Be conversational and friendly, but efficient
- Extract key information: what they need, format, deadline, specific requirements

## Guidelines
- Keep responses concise (2-3 sentences max)
- Ask the most important clarifying question based on what's missing
- If you can detect the category, ask category-specific questions
- Don't repeat information the client has already provided"""


class ResponseGenerator:
    """
    Continuation-mode reply generation.

    The system prompt carries the client context, what has been captured
    so far, and the still-missing fields (with the schema's question for
    each) so the model does not re-ask satisfied ones.
    """

    def __init__(
        self,
        backend: Optional[GenerationBackend] = None,
        schema: Optional[BriefSchema] = None,
    ) -> None:
        self.backend = backend
        self.schema = schema or BriefSchema()

    def summarize(self, brief: Brief) -> str:
        return generate_summary_message(brief, self.schema)

    def build_system_prompt(
        self,
        context_items: Sequence[Any] = (),
        current_brief: Optional[Brief] = None,
        missing_fields: Sequence[str] = (),
    ) -> str:
        prompt = BASE_SYSTEM_PROMPT

        prompt += "\n\n## Categories\n"
        for key in self.schema.category_keys:
            prompt += f"- {key}: {self.schema.category_label(key)}\n"

        if context_items:
            prompt += (
                "\n## Client Context (from past work)\n"
                "This client has worked with us before. Here's relevant context:\n"
            )
            for item in context_items:
                content = getattr(item, "content", str(item))
                prompt += f"\n- {content[:CONTEXT_PREVIEW_CHARS]}"
            prompt += (
                "\n\nUse this context to personalize your questions and avoid "
                "asking for information we already know.\n"
            )

        if current_brief is not None:
            prompt += "\n## Currently Extracted Information\n"
            if current_brief.title:
                prompt += f"- Title: {current_brief.title}\n"
            if current_brief.category:
                prompt += f"- Category: {current_brief.category}\n"
            if current_brief.priority:
                prompt += f"- Priority: {current_brief.priority}\n"
            if current_brief.deadline is not None:
                prompt += f"- Deadline: {current_brief.deadline.isoformat()}\n"
            for name, value in current_brief.attributes.items():
                prompt += f"- {_attribute_label(name)}: {_format_value(value)}\n"
            if current_brief.key_requirements:
                prompt += f"- Requirements: {', '.join(current_brief.key_requirements)}\n"

        if missing_fields:
            category = current_brief.category if current_brief else None
            prompt += "\n## Still Missing\n"
            for field_id in missing_fields:
                question = self.schema.question_for(field_id, category)
                if question:
                    prompt += f"- {field_id}: {question}\n"
                else:
                    prompt += f"- {field_id}\n"
            prompt += "\nAsk only about what's still missing or unclear, starting with the first item."

            schema = self.schema.get_category(category)
            if schema is not None and schema.questions:
                prompt += "\n\nUseful follow-ups for this category once the above is covered:\n"
                for question in schema.questions:
                    prompt += f"- {question}\n"

        return prompt

    def generate(
        self,
        client_id: str,
        messages: Sequence[Any],
        context_items: Sequence[Any] = (),
        current_brief: Optional[Brief] = None,
        missing_fields: Sequence[str] = (),
    ) -> str:
        """
        Produce the next assistant message.

        Raises
        ------
        GenerationError
            If no backend is configured, the backend fails, or it returns
            an empty reply.
        """
        if self.backend is None:
            raise GenerationError("no generation backend configured")

        chat: List[Dict[str, str]] = [
            {
                "role": "system",
                "content": self.build_system_prompt(context_items, current_brief, missing_fields),
            }
        ]
        for message in messages:
            role = getattr(message, "role", "user")
            chat.append(
                {
                    "role": getattr(role, "value", role),
                    "content": getattr(message, "content", ""),
                }
            )

        try:
            text = self.backend.generate(chat)
        except Exception as exc:
            logger.error("[BRIEFING] Reply generation failed for client_id=%s: %s", client_id, exc)
            raise GenerationError(str(exc)) from exc

        text = (text or "").strip()
        if not text:
            raise GenerationError("empty reply from generation backend")
        return text
