from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from csvinsight.app import app
from csvinsight.db.database import create_db_engine, init_db
from csvinsight.db.repository import Repository
from csvinsight.orchestrator.orchestrator import Orchestrator, get_orchestrator

SAMPLE_CSV = "name,age,city\nJohn,30,Tokyo\nJane,25,Osaka"


class FakeLLMClient:
    """Returns canned responses (or raises) and records every prompt it receives."""

    def __init__(self, responses: Optional[List[Any]] = None):
        self.responses = list(responses or [])
        self.calls: List[Dict[str, Any]] = []

    def queue(self, response: Any) -> None:
        self.responses.append(response)

    async def complete_json(self, system_prompt, user_prompt, schema_name, schema, strict=True):
        self.calls.append({
            "system_prompt": system_prompt,
            "user_prompt": user_prompt,
            "schema_name": schema_name,
            "schema": schema,
            "strict": strict,
        })
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        if isinstance(response, (dict, list)):
            return json.dumps(response)
        return response


def insight_payload(count: int = 2) -> Dict[str, Any]:
    return {
        "insights": [
            {
                "title": f"Insight {i}",
                "content": f"Observation number {i}",
                "category": "overview" if i % 2 == 0 else "statistics",
                "confidence": 80 + i,
                "actionable": i % 2 == 1,
            }
            for i in range(count)
        ]
    }


def cleaning_payload() -> Dict[str, Any]:
    return {
        "cleanedHeaders": ["name", "age", "city"],
        "cleanedRows": [["John", "30", "Tokyo"], ["Jane", "25", "Osaka"]],
        "changes": [
            {"type": "value_fix", "row": 2, "column": "city", "original": "osaka", "new": "Osaka", "reason": "casing"},
        ],
        "summary": {"totalChanges": 1, "valuesFixed": 1, "qualityScore": 95},
    }


@pytest.fixture
def session_factory() -> sessionmaker:
    engine = create_db_engine("sqlite://")
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    assert init_db(factory)
    return factory


@pytest.fixture
def repository(session_factory: sessionmaker) -> Repository:
    return Repository(session_factory)


@pytest.fixture
def fake_llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def orchestrator(repository: Repository, fake_llm: FakeLLMClient) -> Orchestrator:
    return Orchestrator(repository, fake_llm)


@pytest.fixture
def client(orchestrator: Orchestrator):
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def user_headers() -> Dict[str, str]:
    return {"X-User-Id": "1"}
