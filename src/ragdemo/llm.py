from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
import json
from typing import Any, Protocol

import httpx

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful AI assistant specializing in software development. "
    "Provide concise, accurate answers with code examples when relevant."
)

ROLE_SYSTEM_PROMPT = "You are a {role}. Provide detailed, accurate answers."


class LLMClientError(RuntimeError):
    pass


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str


@dataclass(frozen=True)
class ChatResult:
    answer: str
    model: str
    used_fallback: bool


class LLMClient(Protocol):
    def complete(self, prompt: str) -> ChatResult: ...

    def chat(self, messages: list[ChatMessage]) -> ChatResult: ...

    def stream(self, prompt: str) -> Iterator[str]: ...


class OllamaChatClient:
    """Client for an OpenAI-compatible ``/chat/completions`` endpoint."""

    def __init__(
        self,
        *,
        base_url: str,
        default_model: str,
        fallback_model: str,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._default_model = default_model
        self._fallback_model = fallback_model
        self._timeout_seconds = timeout_seconds

    def complete(self, prompt: str) -> ChatResult:
        return self.chat([ChatMessage(role="user", content=prompt)])

    def chat(self, messages: list[ChatMessage]) -> ChatResult:
        if not messages:
            raise ValueError("messages must not be empty")

        for model, used_fallback in self._model_candidates():
            try:
                content = self._chat_completion(model=model, messages=messages)
            except (httpx.HTTPError, ValueError) as exc:
                if used_fallback or not self._has_fallback():
                    raise LLMClientError(str(exc)) from exc
                continue

            return ChatResult(answer=content, model=model, used_fallback=used_fallback)

        raise LLMClientError("No model candidates configured")

    def stream(self, prompt: str) -> Iterator[str]:
        payload = {
            "model": self._default_model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": 0,
            "stream": True,
        }
        try:
            # exiting this block releases the connection, also when the caller closes early
            with httpx.stream(
                "POST",
                f"{self._base_url}/chat/completions",
                json=payload,
                timeout=self._timeout_seconds,
            ) as response:
                response.raise_for_status()
                for line in response.iter_lines():
                    fragment = _parse_stream_line(line)
                    if fragment is None:
                        break
                    if fragment:
                        yield fragment
        except httpx.HTTPError as exc:
            raise LLMClientError(str(exc)) from exc

    def _has_fallback(self) -> bool:
        return bool(self._fallback_model) and self._fallback_model != self._default_model

    def _model_candidates(self) -> list[tuple[str, bool]]:
        candidates: list[tuple[str, bool]] = [(self._default_model, False)]
        if self._has_fallback():
            candidates.append((self._fallback_model, True))
        return candidates

    def _chat_completion(self, *, model: str, messages: list[ChatMessage]) -> str:
        response = httpx.post(
            f"{self._base_url}/chat/completions",
            json={
                "model": model,
                "messages": [
                    {"role": message.role, "content": message.content} for message in messages
                ],
                "temperature": 0,
            },
            timeout=self._timeout_seconds,
        )
        response.raise_for_status()

        payload = response.json()
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            raise ValueError("Invalid chat completion payload: missing choices")

        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str) or not content.strip():
            raise ValueError("Invalid chat completion payload: missing assistant content")

        return content.strip()


def _parse_stream_line(line: str) -> str | None:
    """Return the delta text of one SSE line, ``""`` to skip it, ``None`` at ``[DONE]``."""
    stripped = line.strip()
    if not stripped.startswith("data:"):
        return ""

    data = stripped[len("data:"):].strip()
    if data == "[DONE]":
        return None

    try:
        payload: Any = json.loads(data)
    except json.JSONDecodeError as exc:
        raise LLMClientError(f"Invalid chat stream payload: {data[:80]}") from exc

    choices = payload.get("choices") if isinstance(payload, dict) else None
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    delta = choices[0].get("delta")
    content = delta.get("content") if isinstance(delta, dict) else None
    return content if isinstance(content, str) else ""


class EchoChatClient:
    """In-memory chat model that answers without any I/O."""

    model = "echo"

    def __init__(self, prefix: str = "echo: ") -> None:
        self._prefix = prefix

    def complete(self, prompt: str) -> ChatResult:
        return ChatResult(answer=self._reply(prompt), model=self.model, used_fallback=False)

    def chat(self, messages: list[ChatMessage]) -> ChatResult:
        if not messages:
            raise ValueError("messages must not be empty")
        user_turns = [message.content for message in messages if message.role == "user"]
        return self.complete(user_turns[-1] if user_turns else messages[-1].content)

    def stream(self, prompt: str) -> Iterator[str]:
        words = self._reply(prompt).split(" ")
        for index, word in enumerate(words):
            yield word if index == len(words) - 1 else f"{word} "

    def _reply(self, prompt: str) -> str:
        return f"{self._prefix}{prompt.strip()}"
