"""Grounded answer generation for campus-safety questions.

Builds the system framing and the context-bearing user prompt, calls the
configured :class:`ILLMProvider` under a timeout and the shared retry
policy, and returns an explicit :data:`GenerationResult`.

Prompt rules the rest of the system depends on:

- every context document is rendered as ``Document {i}: {title} [Category: {c}]``
  with ``(Relevance: NN.N%)`` only when the hit has a score, followed by a
  ``Content:`` excerpt cut at a word boundary;
- with no context, the model is told that no internal documents matched and
  to open with :attr:`AnswerGenerator.no_context_notice`.  The notice is
  prepended when the model leaves it out, so such answers always carry it;
- emergency-sounding questions get an extra instruction to lead with
  immediate actions and emergency contacts.
"""

from __future__ import annotations

import re

import structlog

from zeb_ai.config.rag_config import RAGConfig
from zeb_ai.interfaces.llm_provider import ILLMProvider
from zeb_ai.models.document import RetrievalResult
from zeb_ai.models.results import (
    FailureReason,
    GenerationFailure,
    GenerationResult,
    GenerationSuccess,
    reason_for,
)
from zeb_ai.utils.concurrency import with_timeout
from zeb_ai.utils.errors import ZebAIError

logger = structlog.get_logger(logger_name=__name__)

_EMERGENCY_PATTERN = re.compile(
    r"\b("
    r"emergenc\w*|urgent|fire|smoke|burning|bleed\w*|blood|injur\w*|unconscious|faint\w*|"
    r"collaps\w*|seizure|chok\w*|attack\w*|assault\w*|weapon\w*|gun\w*|knife|stab\w*|"
    r"kidnap\w*|threat\w*|accident\w*|overdose\w*|poison\w*|suicid\w*|trapped|"
    r"earthquake|flood\w*|robb\w*|harass\w*"
    r")\b",
    re.IGNORECASE,
)


def is_emergency(question: str) -> bool:
    """Return ``True`` if *question* reads like an active emergency."""
    return _EMERGENCY_PATTERN.search(question) is not None


def truncate_excerpt(text: str, budget: int) -> str:
    """Cut *text* to at most *budget* characters at a word boundary, adding ``...``."""
    if len(text) <= budget:
        return text
    head = text[:budget]
    if not text[budget].isspace():
        # Drop the partial trailing word unless it is the only word.
        trimmed = head.rsplit(None, 1)[0] if len(head.split(None, 1)) > 1 else head
        head = trimmed
    return head.rstrip() + "..."


class AnswerGenerator:
    """Produces a grounded answer from a question and its retrieved context."""

    def __init__(self, provider: ILLMProvider | None, config: RAGConfig) -> None:
        self._provider = provider
        self._config = config
        self._system_prompt = self._build_system_prompt()

    @property
    def no_context_notice(self) -> str:
        return (
            f"I couldn't find any internal {self._config.institution} documents "
            "related to your question, so the following is general safety advice."
        )

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    def is_available(self) -> bool:
        return self._provider is not None and self._provider.is_available()

    def get_provider_name(self) -> str | None:
        return self._provider.get_provider_name() if self._provider else None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build_prompt(self, question: str, context: list[RetrievalResult]) -> tuple[str, str]:
        """Return the ``(system_prompt, user_prompt)`` pair for *question*."""
        sections: list[str] = ["CONTEXT DOCUMENTS:"]
        if context:
            sections.append(
                "\n\n".join(self._format_document(i, hit) for i, hit in enumerate(context, start=1))
            )
        else:
            sections.append(
                f"No internal {self._config.institution} documents matched this question.\n\n"
                f'Begin your answer with exactly this sentence: "{self.no_context_notice}" '
                "Then give general, non-institution-specific safety guidance. Do not invent "
                f"{self._config.institution}-specific facts such as phone numbers, office "
                "names, locations or policies."
            )

        if is_emergency(question):
            sections.append(
                "PRIORITY: This question may describe an active emergency. Start the answer "
                "with immediate safety actions and the emergency contacts, before any other "
                "content."
            )

        sections.append(f"USER QUESTION: {question}")
        return self._system_prompt, "\n\n".join(sections)

    async def generate(self, question: str, context: list[RetrievalResult]) -> GenerationResult:
        """Generate an answer.  Provider failures come back as a failure value.

        Exceptions that are not provider errors propagate to the caller.
        """
        if self._provider is None or not self._provider.is_available():
            return GenerationFailure(
                reason=FailureReason.NOT_CONFIGURED,
                message="No generative provider is configured",
                provider=self.get_provider_name(),
            )

        provider = self._provider
        provider_name = provider.get_provider_name()
        system_prompt, user_prompt = self.build_prompt(question, context)

        async def _attempt() -> str:
            return await with_timeout(
                provider.complete(
                    system_prompt,
                    user_prompt,
                    temperature=self._config.temperature,
                    max_tokens=self._config.max_output_tokens,
                ),
                self._config.generation_timeout,
                provider_name=provider_name,
                operation="generate",
            )

        try:
            text = await self._config.retry.run(
                _attempt, operation="generate", provider_name=provider_name
            )
        except ZebAIError as exc:
            reason = reason_for(exc)
            logger.warning(
                "generation_failed",
                provider=provider_name,
                reason=reason.value,
                error=str(exc),
            )
            return GenerationFailure(reason=reason, message=exc.message, provider=provider_name)

        text = text.strip()
        if not context:
            text = self._ensure_notice(text)
        logger.info(
            "answer_generated",
            provider=provider_name,
            context_docs=len(context),
            answer_chars=len(text),
        )
        return GenerationSuccess(text=text, provider=provider_name)

    # ------------------------------------------------------------------
    # Prompt pieces
    # ------------------------------------------------------------------

    def _build_system_prompt(self) -> str:
        name = self._config.assistant_name
        institution = self._config.institution
        lines = [
            f'You are "{name}", the smart campus safety assistant for {institution}. '
            "Answer concisely and professionally.",
            "",
            "Instructions:",
            "- Answer primarily from the CONTEXT DOCUMENTS and cite their titles when you use them.",
            "- If the documents do not cover the question, say so explicitly. You may then offer "
            "general safety guidance, clearly labelled as general advice.",
            f"- Never fabricate {institution}-specific facts (phone numbers, offices, procedures).",
            "- If the question describes an emergency, lead with immediate-action guidance and "
            "emergency contacts before anything else.",
        ]
        if self._config.emergency_contacts:
            lines.append("")
            lines.append("Emergency contacts:")
            lines.extend(f"- {contact}" for contact in self._config.emergency_contacts)
        return "\n".join(lines)

    def _format_document(self, index: int, hit: RetrievalResult) -> str:
        doc = hit.document
        header = f"Document {index}: {doc.title} [Category: {doc.category}]"
        if hit.score is not None:
            header += f" (Relevance: {hit.score * 100:.1f}%)"
        excerpt = truncate_excerpt(doc.content, self._config.excerpt_chars)
        return f"{header}\nContent: {excerpt}"

    def _ensure_notice(self, text: str) -> str:
        if self.no_context_notice.lower() in text.lower():
            return text
        return f"{self.no_context_notice}\n\n{text}"
