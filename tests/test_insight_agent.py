from __future__ import annotations

import asyncio
import json

import pytest

from csvinsight.agents.insight_agent import InsightAgent
from csvinsight.utils.errors import LLMResponseError

from conftest import SAMPLE_CSV, FakeLLMClient, insight_payload


def _run(agent: InsightAgent, csv_content: str = SAMPLE_CSV, headers=None):
    headers = headers if headers is not None else ["name", "age", "city"]
    return asyncio.run(agent.process({"csv_content": csv_content, "headers": headers}))


def test_returns_validated_insights() -> None:
    llm = FakeLLMClient([insight_payload(3)])
    result = _run(InsightAgent(llm))

    insights = result["insights"]
    assert [i.title for i in insights] == ["Insight 0", "Insight 1", "Insight 2"]
    assert insights[1].category == "statistics"
    assert result["data_structure"].total_rows == 2


def test_prompt_contains_summary_and_bounded_sample() -> None:
    rows = "\n".join(f"row{i},{i},City{i}" for i in range(30))
    csv_content = "name,age,city\n" + rows
    llm = FakeLLMClient([insight_payload(1)])
    _run(InsightAgent(llm, sample_rows=20), csv_content)

    call = llm.calls[0]
    assert call["schema_name"] == "comprehensive_data_analysis"
    assert call["strict"] is True
    assert "OVERVIEW" in call["system_prompt"]
    prompt = call["user_prompt"]
    assert "Headers: name, age, city" in prompt
    assert "Total Rows: 30" in prompt
    assert '"type": "numeric"' in prompt
    assert "row19,19,City19" in prompt
    assert "row20,20,City20" not in prompt


def test_markdown_wrapped_json_is_accepted() -> None:
    content = "```json\n" + json.dumps(insight_payload(1)) + "\n```"
    insights = InsightAgent.parse_response(content)
    assert len(insights) == 1


@pytest.mark.parametrize(
    "content",
    [
        "",
        None,
        "not json",
        json.dumps({"results": []}),
        json.dumps([{"title": "t"}]),
    ],
)
def test_unusable_responses_fail(content) -> None:
    with pytest.raises(LLMResponseError):
        InsightAgent.parse_response(content)


@pytest.mark.parametrize(
    "field,value",
    [
        ("category", "summary"),
        ("confidence", 101),
        ("confidence", "90"),
        ("confidence", 87.5),
        ("actionable", "yes"),
        ("extra", "field"),
    ],
)
def test_field_mismatch_is_rejected_not_coerced(field, value) -> None:
    payload = insight_payload(1)
    payload["insights"][0][field] = value
    with pytest.raises(LLMResponseError):
        InsightAgent.parse_response(json.dumps(payload))


def test_missing_field_is_rejected() -> None:
    payload = insight_payload(1)
    del payload["insights"][0]["actionable"]
    with pytest.raises(LLMResponseError):
        InsightAgent.parse_response(json.dumps(payload))


def test_invalid_input_is_rejected_before_calling_llm() -> None:
    llm = FakeLLMClient()
    with pytest.raises(ValueError):
        _run(InsightAgent(llm), csv_content="   ")
    assert llm.calls == []
