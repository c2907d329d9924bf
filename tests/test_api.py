import pytest
from fastapi.testclient import TestClient

from api import app as api_app

client = TestClient(api_app.app)


@pytest.fixture
def ready(monkeypatch, context):
    monkeypatch.setattr(api_app, "CONTEXT", context)
    return context


def test_not_ready_before_startup(monkeypatch):
    monkeypatch.setattr(api_app, "CONTEXT", None)
    assert client.get("/pred").status_code == 503
    assert client.get("/confusion").status_code == 503
    assert client.get("/healthz").json()["status"] == "starting"


def test_health(ready):
    health = api_app.healthz()
    assert health.status == "ok"
    assert health.model == "dummy"


def test_pred_scenario_one(ready):
    r = client.get(
        "/pred",
        params={
            "BMI": 32,
            "Smoker": "Yes",
            "HighBP": "Yes",
            "HeartDiseaseorAttack": "No",
            "PhysActivity": "No",
            "Sex": "Male",
        },
    )
    assert r.status_code == 200
    payload = r.json()
    assert payload["input"] == {
        "BMI": 32.0,
        "Smoker": "Yes",
        "HighBP": "Yes",
        "HeartDiseaseorAttack": "No",
        "PhysActivity": "No",
        "Sex": "Male",
    }
    assert payload["predicted_class"] in {"NoDiabetes", "Diabetes"}
    assert 0 <= payload["prob_Diabetes"] <= 1


def test_pred_defaults(ready):
    r = client.get("/pred")
    assert r.status_code == 200
    assert r.json()["input"] == ready.defaults.as_dict()


def test_pred_invalid_category(ready):
    r = client.get("/pred", params={"HighBP": "maybe"})
    assert r.status_code == 400
    detail = r.json()["detail"]
    assert detail["feature"] == "HighBP"
    assert detail["allowed"] == ["No", "Yes"]


def test_pred_invalid_bmi(ready):
    r = client.get("/pred", params={"BMI": "tall"})
    assert r.status_code == 400
    assert r.json()["detail"]["feature"] == "BMI"


def test_info_ignores_extra_input(ready):
    r = client.get("/info", params={"anything": "here"})
    assert r.status_code == 200
    assert r.json() == {"name": "Test Author", "github_pages_url": "https://example.org/project/"}


def test_info_is_static_before_startup(monkeypatch):
    monkeypatch.setattr(api_app, "CONTEXT", None)
    info = api_app.info_endpoint()
    assert info.name == api_app.DEFAULT_INFO["name"]


def test_confusion(ready):
    r = client.get("/confusion")
    assert r.status_code == 200
    payload = r.json()
    assert payload["labels"] == ["NoDiabetes", "Diabetes"]
    assert len(payload["matrix"]) == 4
    assert sum(cell["count"] for cell in payload["matrix"]) == payload["total"] == ready.confusion.total
    cell = next(c for c in payload["matrix"] if c["actual"] == "Diabetes" and c["predicted"] == "Diabetes")
    assert cell["count"] == ready.confusion.count("Diabetes", "Diabetes")


def test_confusion_heatmap(ready):
    r = client.get("/confusion/heatmap")
    assert r.status_code == 200
    assert r.headers["content-type"] == "image/png"
    assert r.content.startswith(b"\x89PNG")


def test_schema_mismatch_is_server_error(ready, monkeypatch):
    monkeypatch.setattr(ready.model, "categories", {**ready.model.categories, "Sex": ("F", "M")})
    r = client.get("/pred", params={"Sex": "Male"})
    assert r.status_code == 500


def test_lifespan_builds_context(monkeypatch, context):
    monkeypatch.setattr(api_app, "CONTEXT", None)
    monkeypatch.setattr(api_app, "load_config", lambda: {})
    monkeypatch.setattr(api_app, "build_context", lambda config: context)
    with TestClient(api_app.app) as started:
        assert started.get("/healthz").json() == {"status": "ok", "model": "dummy"}
        assert started.get("/pred", params={"BMI": 32}).status_code == 200
    assert api_app.CONTEXT is context
