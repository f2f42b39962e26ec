from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections import deque
from typing import Dict, Iterable, List, Optional, Union

ChatMessages = List[Dict[str, str]]


class LLMClient(ABC):
    """Lightweight interface so workers can swap between real and stub models."""

    @abstractmethod
    def invoke(self, messages: ChatMessages, *, timeout: Optional[float] = None) -> str:
        """Return the assistant text for a list of ``{role, content}`` messages.

        ``timeout`` is a hint; implementations that support a per-request
        deadline should honour it.
        """


class EchoLLMClient(LLMClient):
    """Fallback implementation used for local runs without external APIs."""

    def invoke(self, messages: ChatMessages, *, timeout: Optional[float] = None) -> str:
        system = next((m["content"] for m in messages if m["role"] == "system"), "")
        user = messages[-1]["content"] if messages else ""
        return f"{system.strip()}\n\nRequest:\n{user.strip()}"


class ScriptedLLMClient(LLMClient):
    """Replays canned responses in order and records every call.

    A queued exception instance is raised instead of returned. Once the
    script runs out, ``default`` is returned (or an error raised when it is
    None).
    """

    def __init__(
        self,
        responses: Iterable[Union[str, BaseException]] = (),
        default: Optional[str] = None,
    ) -> None:
        self._responses = deque(responses)
        self.default = default
        self.calls: List[ChatMessages] = []
        self._lock = threading.Lock()

    def invoke(self, messages: ChatMessages, *, timeout: Optional[float] = None) -> str:
        with self._lock:
            self.calls.append([dict(m) for m in messages])
            if self._responses:
                response = self._responses.popleft()
            elif self.default is not None:
                response = self.default
            else:
                raise RuntimeError("ScriptedLLMClient has no response left")
        if isinstance(response, BaseException):
            raise response
        return response
