"""Text-in/text-out language model access for the quality components."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable, List, Protocol, runtime_checkable

from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_core.runnables import Runnable
from langchain_ollama import ChatOllama

from casegen.settings import Settings, get_settings

LOGGER = logging.getLogger(__name__)


class OracleError(RuntimeError):
    """Raised when the oracle cannot produce a response."""


@runtime_checkable
class Oracle(Protocol):
    """Anything that turns a system/user prompt pair into text."""

    def generate(self, case_id: str, system_prompt: str, user_prompt: str) -> str:  # pragma: no cover - protocol
        ...


def build_prompt_chain(llm) -> Runnable:
    """Compose the system + human prompt, the chat model and a string parser."""

    prompt = ChatPromptTemplate.from_messages(
        [
            ("system", "{system_prompt}"),
            ("human", "{user_prompt}"),
        ]
    )
    return prompt | llm | StrOutputParser()


class LangChainOracle:
    """Oracle backed by a LangChain chat model (Ollama by default)."""

    def __init__(self, *, settings: Settings | None = None, llm=None) -> None:
        self.settings = settings or get_settings()
        if llm is None:
            llm = ChatOllama(
                model=self.settings.llm.chat_model,
                base_url=self.settings.llm.ollama_base_url,
                temperature=self.settings.llm.temperature,
                client_kwargs={"timeout": self.settings.llm.timeout_seconds},
            )
        self._chain = build_prompt_chain(llm)

    def generate(self, case_id: str, system_prompt: str, user_prompt: str) -> str:
        LOGGER.debug("Invoking oracle for case %s (%s prompt chars)", case_id, len(user_prompt))
        try:
            # Template variables are passed as values, so braces in prompts are not re-parsed.
            return self._chain.invoke({"system_prompt": system_prompt, "user_prompt": user_prompt})
        except Exception as exc:
            raise OracleError(f"Oracle call failed for case {case_id}: {exc}") from exc


@dataclass
class OracleCall:
    case_id: str
    system_prompt: str
    user_prompt: str


@dataclass
class ScriptedOracle:
    """Offline oracle that replays queued responses in order.

    Used for the ``mock`` provider and in tests. When the queue is empty the
    ``default_response`` is returned; it is empty by default, so an unscripted
    call yields no JSON and verify or repair fail closed. Queued exceptions are
    raised instead of returned.
    """

    responses: deque = field(default_factory=deque)
    default_response: str = ""
    calls: List[OracleCall] = field(default_factory=list)

    @classmethod
    def from_responses(cls, responses: Iterable[str | Exception], default_response: str = "") -> "ScriptedOracle":
        return cls(responses=deque(responses), default_response=default_response)

    def generate(self, case_id: str, system_prompt: str, user_prompt: str) -> str:
        self.calls.append(OracleCall(case_id=case_id, system_prompt=system_prompt, user_prompt=user_prompt))
        response = self.responses.popleft() if self.responses else self.default_response
        if isinstance(response, Exception):
            raise response
        return response


__all__ = ["LangChainOracle", "Oracle", "OracleCall", "OracleError", "ScriptedOracle", "build_prompt_chain"]
