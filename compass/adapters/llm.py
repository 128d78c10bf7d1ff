"""LLM chat adapter with a run-scoped conversation cache."""

import logging
import threading
from typing import Any

from openai import OpenAI

from compass.config import MissingAPIKeyError, Settings, get_openai_api_key
from compass.exec.context import RunContext
from compass.exec.executor import ToolExecutor
from compass.exec.types import ToolRequest
from compass.metrics.registry import MetricsClient

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a travel planning assistant. Answer concisely. "
    "When asked for JSON, reply with a single JSON object and nothing else."
)

# Older turns beyond this many messages are dropped from a session.
MAX_HISTORY_MESSAGES = 12


class ChatSessionCache:
    """Per-collaborator chat histories owned by one planning run.

    Created when a run starts and cleared when it ends, so conversations never
    leak between runs.
    """

    def __init__(self, max_messages: int = MAX_HISTORY_MESSAGES) -> None:
        self.max_messages = max_messages
        self._sessions: dict[str, list[dict[str, str]]] = {}
        self._lock = threading.Lock()

    def history(self, collaborator: str) -> list[dict[str, str]]:
        with self._lock:
            return list(self._sessions.get(collaborator, []))

    def append(self, collaborator: str, role: str, content: str) -> None:
        with self._lock:
            messages = self._sessions.setdefault(collaborator, [])
            messages.append({"role": role, "content": content})
            if len(messages) > self.max_messages:
                del messages[: len(messages) - self.max_messages]

    def collaborators(self) -> list[str]:
        with self._lock:
            return sorted(self._sessions)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()


class LLMAdapter:
    """Sends prompts to the OpenAI chat API through the tool executor.

    ``ask`` returns the reply text, or None when the collaborator is not
    configured or the call failed. Callers treat None as "use your fallback".
    """

    def __init__(
        self,
        settings: Settings,
        client: Any | None = None,
        metrics: MetricsClient | None = None,
    ) -> None:
        self.settings = settings
        self.metrics = metrics
        self._client = client
        self.executor = ToolExecutor(
            tools={"llm_chat": self._chat},
            settings=settings,
            metrics=metrics,
        )

    @property
    def enabled(self) -> bool:
        if self._client is not None:
            return True
        try:
            get_openai_api_key(self.settings)
        except MissingAPIKeyError:
            return False
        return True

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = OpenAI(api_key=get_openai_api_key(self.settings))
        return self._client

    def _chat(self, args: dict[str, Any]) -> dict[str, Any] | None:
        response = self._get_client().chat.completions.create(
            model=self.settings.openai_model,
            messages=args["messages"],
            temperature=0.3,
        )
        text = response.choices[0].message.content
        if not text:
            return None
        return {"text": text}

    def ask(
        self,
        prompt: str,
        collaborator: str,
        ctx: RunContext,
        sessions: ChatSessionCache | None = None,
    ) -> str | None:
        """Ask one question in ``collaborator``'s conversation.

        Args:
            prompt: User prompt.
            collaborator: Conversation key, e.g. ``"budget"`` or ``"vibe"``.
            ctx: Run context for cancellation.
            sessions: Run-scoped history; without one the call is stateless.

        Returns:
            Reply text, or None on any failure.
        """
        if not self.enabled:
            logger.info("llm_disabled", extra={"collaborator": collaborator})
            self._fallback(collaborator)
            return None

        history = sessions.history(collaborator) if sessions is not None else []
        messages = [{"role": "system", "content": SYSTEM_PROMPT}, *history]
        messages.append({"role": "user", "content": prompt})

        response = self.executor.execute(
            ToolRequest(name="llm_chat", args={"messages": messages}), ctx
        )
        if not response.ok or response.data is None:
            logger.warning(
                "llm_call_failed",
                extra={"collaborator": collaborator, "error": response.error},
            )
            self._fallback(collaborator)
            return None

        text = str(response.data["text"])
        if sessions is not None:
            sessions.append(collaborator, "user", prompt)
            sessions.append(collaborator, "assistant", text)
        return text

    def _fallback(self, collaborator: str) -> None:
        if self.metrics is not None:
            self.metrics.inc_fallback(f"llm:{collaborator}")

    def close(self) -> None:
        self.executor.shutdown()
