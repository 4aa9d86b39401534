"""Unit tests for the oracle implementations."""

from __future__ import annotations

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from casegen.quality.oracle import LangChainOracle, OracleError, ScriptedOracle


def test_scripted_oracle_replays_and_records():
    oracle = ScriptedOracle.from_responses(['{"a": 1}', RuntimeError("boom")], default_response="fallback")

    assert oracle.generate("CASE-1", "system", "first") == '{"a": 1}'
    with pytest.raises(RuntimeError):
        oracle.generate("CASE-1", "system", "second")
    assert oracle.generate("CASE-1", "system", "third") == "fallback"
    assert [call.user_prompt for call in oracle.calls] == ["first", "second", "third"]


def test_langchain_oracle_returns_model_text():
    llm = FakeListChatModel(responses=['{"isClean": true, "remainingIssues": []}'])
    oracle = LangChainOracle(llm=llm)

    # Braces in prompts are passed through as values, not template variables.
    response = oracle.generate("CASE-1", "You verify {things}.", 'Manifest: {"caseId": "CASE-1"}')

    assert response == '{"isClean": true, "remainingIssues": []}'


def test_langchain_oracle_wraps_failures():
    class ExplodingModel(FakeListChatModel):
        def _call(self, *args, **kwargs):
            raise ConnectionError("ollama unreachable")

    oracle = LangChainOracle(llm=ExplodingModel(responses=["unused"]))

    with pytest.raises(OracleError):
        oracle.generate("CASE-1", "system", "user")
