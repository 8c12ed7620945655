from __future__ import annotations

import inspect
from typing import Dict

import pytest
from fastapi.testclient import TestClient

from csvinsight.api import analysis_routes, chart_routes, cleaning_routes, data_routes
from csvinsight.app import app
from csvinsight.db.repository import Repository
from csvinsight.orchestrator.orchestrator import Orchestrator, get_orchestrator

from conftest import SAMPLE_CSV, FakeLLMClient, cleaning_payload, insight_payload

HEADERS = ["name", "age", "city"]


def _upload(client: TestClient, user_headers: Dict[str, str], file_name: str = "people.csv") -> int:
    response = client.post(
        "/api/datasets/upload",
        json={"fileName": file_name, "csvContent": SAMPLE_CSV, "headers": HEADERS, "rowCount": 2},
        headers=user_headers,
    )
    assert response.status_code == 200, response.text
    return response.json()["id"]


def test_health(client: TestClient) -> None:
    assert client.get("/health").json()["status"] == "healthy"


def test_missing_user_header_is_unauthorized(client: TestClient) -> None:
    assert client.get("/api/datasets").status_code == 401


def test_upload_list_get_delete(client: TestClient, user_headers) -> None:
    dataset_id = _upload(client, user_headers)

    listed = client.get("/api/datasets", headers=user_headers).json()
    assert [d["id"] for d in listed] == [dataset_id]

    dataset = client.get(f"/api/datasets/{dataset_id}", headers=user_headers).json()
    assert dataset["headers"] == HEADERS
    assert dataset["rowCount"] == 2

    other_user = {"X-User-Id": "2"}
    assert client.get(f"/api/datasets/{dataset_id}", headers=other_user).status_code == 404
    assert client.delete(f"/api/datasets/{dataset_id}", headers=other_user).status_code == 404

    assert client.delete(f"/api/datasets/{dataset_id}", headers=user_headers).json() == {"success": True}
    assert client.get(f"/api/datasets/{dataset_id}", headers=user_headers).status_code == 404


def test_upload_rejects_empty_csv(client: TestClient, user_headers) -> None:
    response = client.post(
        "/api/datasets/upload",
        json={"fileName": "empty.csv", "csvContent": "  ", "headers": [], "rowCount": 0},
        headers=user_headers,
    )
    assert response.status_code == 400


def test_upload_file_parses_headers_and_rows(client: TestClient, user_headers) -> None:
    content = 'name,note\n"Doe, John",hello\nJane,bye\n'.encode("utf-8")
    response = client.post(
        "/api/datasets/upload-file",
        files={"file": ("notes.csv", content, "text/csv")},
        headers=user_headers,
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["headers"] == ["name", "note"]
    assert body["rowCount"] == 2


def test_upload_file_rejects_other_formats(client: TestClient, user_headers) -> None:
    response = client.post(
        "/api/datasets/upload-file",
        files={"file": ("data.xlsx", b"PK", "application/octet-stream")},
        headers=user_headers,
    )
    assert response.status_code == 400


def test_structure_endpoint(client: TestClient, user_headers) -> None:
    dataset_id = _upload(client, user_headers)
    structure = client.get(f"/api/datasets/{dataset_id}/structure", headers=user_headers).json()
    assert structure["total_rows"] == 2
    age = structure["columns"][1]
    assert age["type"] == "numeric"
    assert age["statistics"]["mean"] == 27.5


def test_generate_insights_replaces_previous_batch(client: TestClient, user_headers, fake_llm: FakeLLMClient) -> None:
    dataset_id = _upload(client, user_headers)
    payload = {"datasetId": dataset_id, "csvContent": SAMPLE_CSV, "headers": HEADERS}

    fake_llm.queue(insight_payload(3))
    response = client.post("/api/insights/generate", json=payload, headers=user_headers)
    assert response.json() == {"success": True, "count": 3}

    fake_llm.queue(insight_payload(2))
    client.post("/api/insights/generate", json=payload, headers=user_headers)

    insights = client.get(f"/api/insights/{dataset_id}", headers=user_headers).json()
    assert [i["title"] for i in insights] == ["Insight 0", "Insight 1"]
    assert insights[0]["insightType"] == "overview"
    assert insights[1]["confidence"] == 81


def test_insight_response_missing_field_writes_nothing(client: TestClient, user_headers, fake_llm: FakeLLMClient) -> None:
    dataset_id = _upload(client, user_headers)
    fake_llm.queue({"results": []})

    response = client.post(
        "/api/insights/generate",
        json={"datasetId": dataset_id, "csvContent": SAMPLE_CSV, "headers": HEADERS},
        headers=user_headers,
    )

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to generate insights"
    assert client.get(f"/api/insights/{dataset_id}", headers=user_headers).json() == []


def test_insights_for_unknown_dataset(client: TestClient, user_headers, fake_llm: FakeLLMClient) -> None:
    response = client.post(
        "/api/insights/generate",
        json={"datasetId": 999, "csvContent": SAMPLE_CSV, "headers": HEADERS},
        headers=user_headers,
    )
    assert response.status_code == 404
    assert fake_llm.calls == []


def test_clean_then_export(client: TestClient, user_headers, fake_llm: FakeLLMClient) -> None:
    dataset_id = _upload(client, user_headers)
    payload = {"datasetId": dataset_id, "csvContent": SAMPLE_CSV, "headers": HEADERS}

    assert client.get(f"/api/cleaning/{dataset_id}/latest", headers=user_headers).json() is None

    fake_llm.queue(cleaning_payload())
    cleaned = client.post("/api/cleaning/clean", json=payload, headers=user_headers).json()
    assert cleaned["success"] is True
    assert cleaned["report"]["summary"]["qualityScore"] == 95

    latest = client.get(f"/api/cleaning/{dataset_id}/latest", headers=user_headers).json()
    assert latest["cleanedCsv"] == cleaned["cleanedCsv"]
    assert latest["originalCsv"] == SAMPLE_CSV

    exported = client.post(
        "/api/cleaning/export", json={"datasetId": dataset_id, "newFileName": ""}, headers=user_headers
    ).json()
    assert exported["fileName"] == "cleaned_people.csv"
    assert exported["rowCount"] == len(cleaned["cleanedCsv"].strip().split("\n")) - 1

    new_dataset = client.get(f"/api/datasets/{exported['datasetId']}", headers=user_headers).json()
    assert new_dataset["headers"] == ["name", "age", "city"]
    assert new_dataset["rawCsv"] == cleaned["cleanedCsv"]


def test_export_with_custom_name(client: TestClient, user_headers, fake_llm: FakeLLMClient) -> None:
    dataset_id = _upload(client, user_headers)
    fake_llm.queue(cleaning_payload())
    client.post(
        "/api/cleaning/clean",
        json={"datasetId": dataset_id, "csvContent": SAMPLE_CSV, "headers": HEADERS},
        headers=user_headers,
    )
    exported = client.post(
        "/api/cleaning/export", json={"datasetId": dataset_id, "newFileName": "final.csv"}, headers=user_headers
    ).json()
    assert exported["fileName"] == "final.csv"


def test_export_without_cleaning_result(client: TestClient, user_headers) -> None:
    dataset_id = _upload(client, user_headers)
    response = client.post("/api/cleaning/export", json={"datasetId": dataset_id}, headers=user_headers)
    assert response.status_code == 404


def test_cleaning_failure_reports_category(client: TestClient, user_headers, fake_llm: FakeLLMClient) -> None:
    dataset_id = _upload(client, user_headers)
    fake_llm.queue(RuntimeError("Error code: 429 - rate limit"))

    response = client.post(
        "/api/cleaning/clean",
        json={"datasetId": dataset_id, "csvContent": SAMPLE_CSV, "headers": HEADERS},
        headers=user_headers,
    )

    assert response.status_code == 500
    assert response.json()["detail"]["category"] == "rate_limit"
    assert client.get(f"/api/cleaning/{dataset_id}/latest", headers=user_headers).json() is None


def test_chart_config_crud(client: TestClient, user_headers) -> None:
    dataset_id = _upload(client, user_headers)
    created = client.post(
        "/api/charts",
        json={
            "datasetId": dataset_id,
            "chartType": "bar",
            "labelColumn": 0,
            "datasets": [1],
            "datasetColors": {"1": "#6366f1"},
        },
        headers=user_headers,
    ).json()
    assert created["palette"] == "vibrant"

    updated = client.patch(
        f"/api/charts/{created['id']}", json={"chartType": "doughnut", "palette": "ocean"}, headers=user_headers
    ).json()
    assert updated["config"]["chartType"] == "doughnut"
    assert updated["config"]["labelColumn"] == 0

    configs = client.get(f"/api/charts/dataset/{dataset_id}", headers=user_headers).json()
    assert [c["palette"] for c in configs] == ["ocean"]
    assert client.get(f"/api/charts/{created['id']}", headers={"X-User-Id": "2"}).status_code == 404


def test_chart_config_rejects_unknown_type(client: TestClient, user_headers) -> None:
    dataset_id = _upload(client, user_headers)
    response = client.post(
        "/api/charts",
        json={"datasetId": dataset_id, "chartType": "radar", "labelColumn": 0, "datasets": [], "datasetColors": {}},
        headers=user_headers,
    )
    assert response.status_code == 422


def test_empty_cleaning_result_is_rejected(client: TestClient, user_headers, fake_llm: FakeLLMClient) -> None:
    dataset_id = _upload(client, user_headers)
    payload = cleaning_payload()
    payload["cleanedHeaders"] = []
    payload["cleanedRows"] = []
    fake_llm.queue(payload)

    response = client.post(
        "/api/cleaning/clean",
        json={"datasetId": dataset_id, "csvContent": SAMPLE_CSV, "headers": HEADERS},
        headers=user_headers,
    )

    assert response.status_code == 500
    assert response.json()["detail"]["category"] == "generic"
    assert client.get(f"/api/cleaning/{dataset_id}/latest", headers=user_headers).json() is None


def test_export_of_empty_cleaned_csv_is_client_error(
    client: TestClient, user_headers, repository: Repository
) -> None:
    dataset_id = _upload(client, user_headers)
    repository.create_cleaning_result(dataset_id, SAMPLE_CSV, "", {"summary": {"totalChanges": 0}})

    response = client.post("/api/cleaning/export", json={"datasetId": dataset_id}, headers=user_headers)

    assert response.status_code == 422
    assert [d["id"] for d in client.get("/api/datasets", headers=user_headers).json()] == [dataset_id]


def test_writes_fail_with_503_when_persistence_is_unavailable(user_headers, fake_llm: FakeLLMClient) -> None:
    orchestrator = Orchestrator(Repository(None), fake_llm)
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    try:
        client = TestClient(app)
        response = client.post(
            "/api/datasets/upload",
            json={"fileName": "people.csv", "csvContent": SAMPLE_CSV, "headers": HEADERS, "rowCount": 2},
            headers=user_headers,
        )
        assert response.status_code == 503

        listed = client.get("/api/datasets", headers=user_headers)
        assert listed.status_code == 200
        assert listed.json() == []
    finally:
        app.dependency_overrides.clear()


@pytest.mark.parametrize(
    "handler",
    [
        data_routes.upload_dataset,
        data_routes.list_datasets,
        data_routes.get_dataset,
        data_routes.delete_dataset,
        data_routes.get_data_structure,
        analysis_routes.list_insights,
        cleaning_routes.get_latest_cleaning_result,
        cleaning_routes.export_cleaned_dataset,
        chart_routes.create_chart_config,
        chart_routes.list_chart_configs,
        chart_routes.get_chart_config,
        chart_routes.update_chart_config,
    ],
)
def test_database_only_handlers_run_in_threadpool(handler) -> None:
    assert not inspect.iscoroutinefunction(handler)
