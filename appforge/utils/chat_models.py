"""Backends that talk to real chat-completion services."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_deepseek import ChatDeepSeek
from langchain_openai import ChatOpenAI
from openai import OpenAI

from appforge.errors import BackendError
from appforge.utils.llm_clients import ChatMessages, EchoLLMClient, LLMClient
from appforge.utils.settings import LLMConfig

logger = logging.getLogger(__name__)


class OpenAIChatClient(LLMClient):
    """Direct OpenAI chat-completions client.

    With ``json_mode`` the request asks for a JSON object response. The
    service may ignore that, so callers still decode defensively.
    """

    def __init__(
        self,
        model: str,
        temperature: float = 0.0,
        json_mode: bool = False,
        client: Optional[OpenAI] = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self.json_mode = json_mode
        self.client = client or OpenAI()

    def invoke(self, messages: ChatMessages, *, timeout: Optional[float] = None) -> str:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
        }
        if self.json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        if timeout is not None:
            kwargs["timeout"] = timeout
        try:
            response = self.client.chat.completions.create(**kwargs)
        except Exception as exc:
            raise BackendError(f"OpenAI call failed (model={self.model}): {exc}") from exc
        if not response.choices:
            return ""
        content = response.choices[0].message.content
        return content if isinstance(content, str) else ""


class LangChainChatClient(LLMClient):
    """Adapter over any LangChain chat model (ChatOpenAI, ChatDeepSeek, ...)."""

    def __init__(self, model: BaseChatModel) -> None:
        self.model = model

    def invoke(self, messages: ChatMessages, *, timeout: Optional[float] = None) -> str:
        try:
            reply = self.model.invoke(_to_langchain(messages))
        except Exception as exc:
            raise BackendError(f"chat model call failed: {exc}") from exc
        content = reply.content
        return content if isinstance(content, str) else ""


def _to_langchain(messages: ChatMessages) -> List[BaseMessage]:
    converted: List[BaseMessage] = []
    for message in messages:
        role = message.get("role")
        content = message.get("content", "")
        if role == "system":
            converted.append(SystemMessage(content=content))
        elif role == "assistant":
            converted.append(AIMessage(content=content))
        else:
            converted.append(HumanMessage(content=content))
    return converted


def build_llm_client(config: LLMConfig) -> LLMClient:
    provider = config.provider.strip().lower()
    logger.debug("Building %s client for model %s", provider, config.model)
    if provider == "openai":
        return OpenAIChatClient(
            model=config.model,
            temperature=config.temperature,
            json_mode=config.json_mode,
        )
    if provider == "langchain-openai":
        return LangChainChatClient(
            ChatOpenAI(model=config.model, temperature=config.temperature, timeout=config.timeout_s)
        )
    if provider == "deepseek":
        return LangChainChatClient(
            ChatDeepSeek(
                model=config.model,
                temperature=config.temperature,
                timeout=config.timeout_s,
                max_retries=2,
            )
        )
    if provider == "echo":
        return EchoLLMClient()
    raise ValueError(f"Unknown LLM provider: {config.provider!r}")
