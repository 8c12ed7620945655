from __future__ import annotations

import asyncio

import pytest

from csvinsight.utils.errors import LLMResponseError
from csvinsight.utils.llm_utils import LLMClient, classify_llm_error, extract_json_content


def test_extract_plain_json() -> None:
    assert extract_json_content('{"a": 1}') == {"a": 1}


def test_extract_fenced_json() -> None:
    assert extract_json_content('```\n[1, 2]\n```') == [1, 2]
    assert extract_json_content('Here:\n```json\n{"a": 1}\n```') == {"a": 1}


@pytest.mark.parametrize("content", [None, "", "   ", "{broken"])
def test_extract_rejects_unusable_content(content) -> None:
    with pytest.raises(LLMResponseError):
        extract_json_content(content)


@pytest.mark.parametrize(
    "message,category",
    [
        ("Request timed out.", "timeout"),
        ("read timeout", "timeout"),
        ("Rate limit reached for requests", "rate_limit"),
        ("Error code: 429", "rate_limit"),
        ("Connection error.", "network"),
        ("network unreachable", "network"),
        ("Error code: 400 - invalid schema", "generic"),
    ],
)
def test_classify_llm_error(message, category) -> None:
    assert classify_llm_error(RuntimeError(message)) == category


def test_missing_api_key_fails_without_network_call() -> None:
    client = LLMClient(api_key="", base_url="http://127.0.0.1:9/v1", model="test-model")
    with pytest.raises(LLMResponseError):
        asyncio.run(client.complete_json("system", "user", "schema", {"type": "object"}))
