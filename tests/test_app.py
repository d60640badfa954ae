import pytest

pytest.importorskip("flask")

import app as app_module
from config import CFG


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(app_module, "BASE_DIR", str(tmp_path))
    monkeypatch.setattr(app_module, "SOLUTIONS_DIR", str(tmp_path))
    monkeypatch.setattr(CFG, "SOLUTIONS_OUT", app_module.SOLUTIONS_FILENAME)
    monkeypatch.setattr(CFG, "SOLUTIONS_JSON", "solutions.json")
    monkeypatch.setattr(CFG, "NODE_LIMIT", -1)
    monkeypatch.setattr(CFG, "MAX_SECONDS", 0)
    monkeypatch.setattr(CFG, "MAX_SOLUTIONS", -1)
    app_module.app.config["TESTING"] = True
    with app_module.app.test_client() as c:
        yield c


def test_index_lists_reference_catalog(client):
    resp = client.get("/")
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["reference"]["box"] == "4x4x2"
    assert [p["kind"] for p in data["reference"]["catalog"]] == ["C", "D", "B", "F", "A", "E"]
    assert "cp_sat" in data["backends"]


def test_solve_defaults_to_reference_catalog(client, tmp_path):
    resp = client.post("/solve", json={})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["ok"] is True
    assert data["solution_count"] == 8
    assert data["distinct_count"] == 1
    assert data["solutions"][0]["layers"].splitlines()[0] == "BCEE  BBBE"
    assert (tmp_path / app_module.SOLUTIONS_FILENAME).exists()

    latest = client.get("/result/latest").get_json()
    assert latest["solution_count"] == 8

    download = client.get("/download/solutions")
    assert download.status_code == 200
    assert b"Solution 1" in download.data


def test_solve_custom_catalog(client):
    resp = client.post("/solve", json={
        "catalog": {"A": ["000", "100"], "B": ["000", "100"]},
        "box": [2, 2, 1],
        "max_solutions": 3,
    })
    data = resp.get_json()
    assert resp.status_code == 200
    assert data["ok"] is True
    assert data["solution_count"] == 3
    assert data["box"] == "2x2x1"


def test_solve_volume_mismatch_is_not_a_bad_request(client):
    resp = client.post("/solve", json={"catalog": "A: 000 100", "box": "2x2x1"})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["ok"] is False
    assert "does not match" in data["reason"]


@pytest.mark.parametrize("payload", [
    {"catalog": "garbage", "box": "2x1x1"},
    {"catalog": "A: 000 100", "box": "two"},
    {"backend": "magic"},
    {"max_solutions": "lots"},
])
def test_bad_requests(client, payload):
    resp = client.post("/solve", json=payload)
    assert resp.status_code == 400
    assert resp.get_json()["ok"] is False


def test_non_json_body_is_rejected(client):
    resp = client.post("/solve", data="not json", content_type="text/plain")
    assert resp.status_code == 400


def test_progress_is_not_cached(client):
    resp = client.get("/progress")
    assert resp.status_code == 200
    assert resp.headers["Cache-Control"] == "no-store, max-age=0"
    assert "status" in resp.get_json()
