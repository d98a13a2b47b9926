import asyncio

import pytest
from fastapi.testclient import TestClient

from application import PipelineContext
from domain.entities import StatsContribution
from domain.enums import Region
from presentation.api import create_app
from tests.conftest import FakeUpstream, make_match, make_timeline


@pytest.fixture()
def upstream_api():
    return FakeUpstream()


@pytest.fixture()
def pipeline(tmp_path, upstream_api):
    return PipelineContext(db_path=tmp_path / "api.sqlite", client=upstream_api, workers=1)


@pytest.fixture()
def client(pipeline):
    with TestClient(create_app(pipeline, cron_secret="s3cret")) as c:
        yield c


def test_cron_requires_bearer_secret(client):
    missing = client.get("/api/cron/scrape-matches")
    assert missing.status_code == 401
    assert missing.json() == {"ok": False, "error": {"code": "UNAUTHORIZED", "message": "Unauthorized"}}
    wrong = client.get("/api/cron/scrape-matches", headers={"Authorization": "Bearer nope"})
    assert wrong.status_code == 401


def test_cron_without_configured_secret(pipeline):
    with TestClient(create_app(pipeline, cron_secret="")) as c:
        response = c.get("/api/cron/scrape-matches", headers={"Authorization": "Bearer "})
    assert response.status_code == 500
    assert response.json()["error"]["code"] == "CRON_SECRET_MISSING"


def test_cron_runs_an_invocation(client, pipeline, upstream_api):
    pipeline.store.store_match(make_match("EUW1_1"), Region.EUROPE)
    upstream_api.ids_by_puuid["EUW1_1-p1"] = ["EUW1_2"]
    upstream_api.add_match(make_match("EUW1_2"))

    response = client.get("/api/cron/scrape-matches", headers={"Authorization": "Bearer s3cret"})
    assert response.status_code == 200
    assert response.headers["cache-control"] == "no-store"
    body = response.json()
    assert body["ok"] is True
    assert body["data"]["total_stored"] == 1
    assert body["data"]["regions"]["europe"]["stored"] == 1


def test_enrich_match(client, pipeline, upstream_api):
    payload = make_match("EUW1_5")
    pipeline.store.store_match(payload, Region.EUROPE)
    upstream_api.add_match(payload, make_timeline())

    response = client.post("/api/enrich-match", json={"matchId": "EUW1_5", "region": "euw1"})
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True and body["success"] is True
    assert len(body["results"]) == 10

    again = client.post("/api/enrich-match", json={"matchId": "EUW1_5", "region": "europe"}).json()
    assert again["cached"] is True


def test_enrich_match_failures(client):
    missing = client.post("/api/enrich-match", json={"matchId": "EUW1_404", "region": "europe"})
    assert missing.status_code == 404
    assert missing.json()["notFound"] is True

    bad_region = client.post("/api/enrich-match", json={"matchId": "EUW1_1", "region": "moon"})
    assert bad_region.status_code == 400
    assert bad_region.json()["error"]["code"] == "BAD_REGION"

    invalid = client.post("/api/enrich-match", json={"region": "europe"})
    assert invalid.status_code == 422


def test_auto_enrich_and_job_lookup(client, pipeline, upstream_api):
    payload = make_match("EUW1_6")
    pipeline.store.store_match(payload, Region.EUROPE)
    upstream_api.add_match(payload, make_timeline())

    response = client.post("/api/auto-enrich", json={"matchIds": ["EUW1_6", "EUW1_7"], "region": "europe"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["queued"] == 1

    job = client.get(f"/api/enrich-jobs/{data['jobs'][0]}")
    assert job.status_code == 200
    assert job.json()["data"]["matchId"] == "EUW1_6"

    unknown = client.get("/api/enrich-jobs/nope")
    assert unknown.status_code == 404
    assert unknown.json()["error"]["code"] == "JOB_NOT_FOUND"


def test_champion_stats(client, pipeline):
    assert client.get("/api/champions").json() == {"ok": True, "data": {"patch": None, "champions": []}}
    assert client.get("/api/champions/Ahri").status_code == 404

    pipeline.aggregator.add(StatsContribution(champion_name="Ahri", patch="14.23", win=True, game_duration=1200))
    asyncio.run(pipeline.aggregator.flush())

    listing = client.get("/api/champions").json()["data"]
    assert listing["patch"] == "14.23"
    assert listing["champions"][0]["champion"] == "Ahri"
    detail = client.get("/api/champions/Ahri").json()["data"]
    assert detail["games"] == 1 and detail["win_rate"] == 1.0


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["db"]["ok"] is True
    assert data["queue"]["running"] is True
    assert set(data["rate_limits"]) == {"europe", "americas", "asia", "sea"}
