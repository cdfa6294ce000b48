import cloud_run_app
from storage.snapshot_store import StoreError


def test_health_check():
    client = cloud_run_app.app.test_client()

    response = client.get("/health")

    assert response.status_code == 200
    assert response.get_json() == {"status": "healthy"}


def test_trigger_returns_summary(monkeypatch):
    monkeypatch.setattr(cloud_run_app, "run_monitor", lambda: {"joined": 1, "changed": 0, "left": 2})
    client = cloud_run_app.app.test_client()

    response = client.post("/")

    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "success"
    assert body["summary"] == {"joined": 1, "changed": 0, "left": 2}


def test_trigger_reports_fatal_errors(monkeypatch):
    def failing():
        raise StoreError("snapshot unreadable")

    monkeypatch.setattr(cloud_run_app, "run_monitor", failing)
    client = cloud_run_app.app.test_client()

    response = client.get("/")

    assert response.status_code == 500
    body = response.get_json()
    assert body["error"] == "StoreError"
    assert "traceback" not in body
