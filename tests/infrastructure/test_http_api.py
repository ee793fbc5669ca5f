"""End-to-end tests of the HTTP API against both store backends."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from starlette.testclient import TestClient

from yoshon.infrastructure.config import Settings
from yoshon.infrastructure.http.app import create_app
from yoshon.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)
from yoshon.infrastructure.persistence.sql_product_repository import (
    SqlProductRepository,
)
from tests.fakes import BrokenProductRepository

SECRET = "test-secret"
ADMIN = {"x-admin-password": SECRET}

MATZO = {"Brand": "Acme", "Product Name": "Matzo Meal"}


def _json_repo(tmp_path: Path) -> JsonProductRepository:
    path = tmp_path / "products.json"
    JsonProductRepository.initialize(path)
    return JsonProductRepository(path)


def _sql_repo(tmp_path: Path) -> SqlProductRepository:
    repo = SqlProductRepository(create_engine(f"sqlite:///{tmp_path / 'catalog.db'}"))
    repo.create_schema()
    return repo


@pytest.fixture(params=["json", "sql"])
def client(request, tmp_path) -> TestClient:
    repo = _json_repo(tmp_path) if request.param == "json" else _sql_repo(tmp_path)
    settings = Settings(admin_password=SECRET, data_file=tmp_path / "products.json")
    return TestClient(create_app(settings, repository=repo))


def _add(client: TestClient, body: dict) -> dict:
    response = client.post("/api/products", json=body, headers=ADMIN)
    assert response.status_code == 201, response.text
    return response.json()


class TestReads:

    def test_empty_catalog(self, client):
        response = client.get("/api/products")
        assert response.status_code == 200
        assert response.json() == []

    def test_health_counts_products(self, client):
        for name in ("A", "B", "C"):
            _add(client, {"Brand": "Acme", "Product Name": name})
        response = client.get("/api/health")
        assert response.status_code == 200
        payload = response.json()
        assert payload["status"] == "ok"
        assert payload["totalProducts"] == 3
        assert payload["timestamp"]
        assert len(client.get("/api/products").json()) == 3

    def test_get_one(self, client):
        created = _add(client, MATZO)["product"]
        response = client.get(f"/api/products/{created['id']}")
        assert response.status_code == 200
        assert response.json() == created

    def test_get_unknown(self, client):
        response = client.get("/api/products/404")
        assert response.status_code == 404
        assert response.json() == {"error": "Product not found"}


class TestCreate:

    def test_default_yoshon(self, client):
        payload = _add(client, MATZO)
        assert payload["message"] == "Product added successfully"
        assert payload["product"]["Yoshon"] == "Status N/A Yet"
        assert payload["product"]["Brand"] == "Acme"
        assert payload["totalProducts"] == 1

    def test_fields_stored_exactly_as_supplied(self, client):
        created = _add(client, {"Brand": " Acme ", "Product Name": " ", "Yoshon": False})["product"]
        assert created["Brand"] == " Acme "
        assert created["Product Name"] == " "
        assert created["Yoshon"] == "Status N/A Yet"
        assert client.get(f"/api/products/{created['id']}").json() == created

    def test_password_in_body(self, client):
        response = client.post("/api/products", json={**MATZO, "password": SECRET})
        assert response.status_code == 201
        assert "password" not in response.json()["product"]

    @pytest.mark.parametrize("body", [
        {"Brand": "", "Product Name": "Matzo Meal"},
        {"Brand": "Acme", "Product Name": ""},
        {"Brand": "Acme"},
        {},
    ])
    def test_missing_fields(self, client, body):
        response = client.post("/api/products", json=body, headers=ADMIN)
        assert response.status_code == 400
        assert response.json() == {"error": "Brand and Product Name are required"}
        assert client.get("/api/products").json() == []

    def test_malformed_json(self, client):
        response = client.post(
            "/api/products",
            content=b"{not json",
            headers={**ADMIN, "content-type": "application/json"},
        )
        assert response.status_code == 400
        assert "error" in response.json()


class TestAuthorization:

    @pytest.mark.parametrize("method, path, body", [
        ("POST", "/api/products", MATZO),
        ("PUT", "/api/products/1", MATZO),
        ("DELETE", "/api/products/1", None),
        ("POST", "/api/products/bulk/replace", []),
        ("POST", "/api/products/import/json", {"products": []}),
    ])
    def test_write_routes_require_secret(self, client, method, path, body):
        existing = _add(client, {"Brand": "Zed", "Product Name": "Flour"})["product"]

        missing = client.request(method, path, json=body)
        wrong = client.request(method, path, json=body, headers={"x-admin-password": "nope"})

        for response in (missing, wrong):
            assert response.status_code == 401
            assert response.json() == {"error": "Unauthorized"}
        assert client.get("/api/products").json() == [existing]

    def test_unauthorized_before_validation(self, client):
        response = client.post("/api/products", json={"Brand": ""})
        assert response.status_code == 401

    def test_wrong_body_password(self, client):
        response = client.post("/api/products", json={**MATZO, "password": "nope"})
        assert response.status_code == 401


class TestUpdateAndDelete:

    def test_round_trip(self, client):
        created = _add(client, MATZO)["product"]
        product_url = f"/api/products/{created['id']}"

        updated = client.put(
            product_url,
            json={"Brand": "Acme", "Product Name": "Matzo Meal Fine", "Yoshon": "Yoshon"},
            headers=ADMIN,
        )
        assert updated.status_code == 200
        assert updated.json()["product"] == {
            "id": created["id"],
            "Brand": "Acme",
            "Product Name": "Matzo Meal Fine",
            "Yoshon": "Yoshon",
        }
        assert client.get(product_url).json()["Product Name"] == "Matzo Meal Fine"

        deleted = client.delete(product_url, headers=ADMIN)
        assert deleted.status_code == 200
        assert deleted.json()["product"]["Product Name"] == "Matzo Meal Fine"
        assert deleted.json()["totalProducts"] == 0
        assert client.get(product_url).status_code == 404

    def test_update_unknown(self, client):
        response = client.put("/api/products/77", json=MATZO, headers=ADMIN)
        assert response.status_code == 404
        assert client.get("/api/products").json() == []

    def test_update_missing_fields(self, client):
        created = _add(client, MATZO)["product"]
        response = client.put(
            f"/api/products/{created['id']}", json={"Brand": "Acme"}, headers=ADMIN
        )
        assert response.status_code == 400
        assert client.get(f"/api/products/{created['id']}").json() == created

    def test_delete_unknown(self, client):
        _add(client, MATZO)
        response = client.delete("/api/products/77", headers=ADMIN)
        assert response.status_code == 404
        assert len(client.get("/api/products").json()) == 1

    def test_non_integer_id_does_not_match(self, client):
        response = client.delete("/api/products/abc", headers=ADMIN)
        assert response.status_code in (404, 405)
        assert "error" in response.json()


class TestBulkReplace:

    @pytest.mark.parametrize("path", ["/api/products/bulk/replace", "/api/products/import/json"])
    def test_bare_array(self, client, path):
        _add(client, MATZO)
        response = client.post(
            path,
            json=[
                {"Brand": "Zed", "Product Name": "Flour", "Yoshon": "Yoshon"},
                {"Brand": "Zed", "Product Name": "Sugar"},
            ],
            headers=ADMIN,
        )
        assert response.status_code == 200
        assert response.json() == {"message": "Products imported successfully", "totalProducts": 2}
        products = client.get("/api/products").json()
        assert [p["Product Name"] for p in products] == ["Flour", "Sugar"]
        assert products[1]["Yoshon"] == "Status N/A Yet"

    def test_wrapped_array_with_body_password(self, client):
        response = client.post(
            "/api/products/import/json",
            json={"password": SECRET, "products": [{"Brand": "Zed", "Product Name": "Flour"}]},
        )
        assert response.status_code == 200
        assert response.json()["totalProducts"] == 1

    @pytest.mark.parametrize("body", [{"products": "nope"}, {"Brand": "Acme"}, "text", 5])
    def test_non_array_rejected(self, client, body):
        existing = _add(client, MATZO)["product"]
        response = client.post("/api/products/bulk/replace", json=body, headers=ADMIN)
        assert response.status_code == 400
        assert response.json() == {"error": "Products must be an array"}
        assert client.get("/api/products").json() == [existing]

    def test_non_object_entry_rejected(self, client):
        existing = _add(client, MATZO)["product"]
        response = client.post(
            "/api/products/bulk/replace", json=[MATZO, "Flour"], headers=ADMIN
        )
        assert response.status_code == 400
        assert client.get("/api/products").json() == [existing]


class TestStoreFailures:

    @pytest.fixture
    def broken(self) -> TestClient:
        settings = Settings(admin_password=SECRET)
        return TestClient(create_app(settings, repository=BrokenProductRepository()))

    def test_list_failure(self, broken):
        response = broken.get("/api/products")
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch products"}

    def test_health_failure(self, broken):
        response = broken.get("/api/health")
        assert response.status_code == 500
        assert response.json()["status"] == "error"

    @pytest.mark.parametrize("method, path, body, message", [
        ("POST", "/api/products", MATZO, "Failed to add product"),
        ("PUT", "/api/products/1", MATZO, "Failed to update product"),
        ("DELETE", "/api/products/1", None, "Failed to delete product"),
        ("POST", "/api/products/bulk/replace", [MATZO], "Failed to import products"),
    ])
    def test_write_failures(self, broken, method, path, body, message):
        response = broken.request(method, path, json=body, headers=ADMIN)
        assert response.status_code == 500
        assert response.json() == {"error": message}

    def test_corrupt_json_file(self, tmp_path):
        repo = _json_repo(tmp_path)
        client = TestClient(create_app(Settings(admin_password=SECRET), repository=repo))
        repo.file_path.write_text("{oops", encoding="utf-8")
        assert client.get("/api/products").status_code == 500
        assert client.post("/api/products", json=MATZO, headers=ADMIN).status_code == 500
        assert repo.file_path.read_text(encoding="utf-8") == "{oops"


def test_duplicate_in_sql_backend_is_a_store_error(tmp_path):
    client = TestClient(create_app(Settings(admin_password=SECRET), repository=_sql_repo(tmp_path)))
    _add(client, MATZO)
    response = client.post("/api/products", json=MATZO, headers=ADMIN)
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to add product"}
    assert client.get("/api/health").json()["totalProducts"] == 1


def test_missing_data_file_fails_app_creation(tmp_path):
    from yoshon.domain.exceptions import StoreError

    settings = Settings(data_file=tmp_path / "absent.json", admin_password=SECRET)
    with pytest.raises(StoreError):
        create_app(settings)


def test_json_file_layout(tmp_path):
    repo = _json_repo(tmp_path)
    client = TestClient(create_app(Settings(admin_password=SECRET), repository=repo))
    _add(client, {**MATZO, "Yoshon": "Yoshon"})
    assert json.loads(repo.file_path.read_text(encoding="utf-8")) == [
        {"id": 1, "Brand": "Acme", "Product Name": "Matzo Meal", "Yoshon": "Yoshon"}
    ]


class TestUnhandledErrors:

    def test_unexpected_exception_becomes_generic_500(self):
        class ExplodingRepository(BrokenProductRepository):
            def list_all(self):
                raise RuntimeError("boom")

        app = create_app(Settings(admin_password=SECRET), repository=ExplodingRepository())
        client = TestClient(app, raise_server_exceptions=False)
        response = client.get("/api/products")
        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}

    def test_unknown_route_uses_error_shape(self, client):
        response = client.get("/api/unknown")
        assert response.status_code == 404
        assert response.json() == {"error": "Not Found"}

    def test_wrong_method_uses_error_shape(self, client):
        response = client.patch("/api/products", json=MATZO, headers=ADMIN)
        assert response.status_code == 405
        assert "error" in response.json()


def test_store_calls_run_outside_the_event_loop(tmp_path):
    seen = []

    class RecordingRepository(JsonProductRepository):
        def list_all(self):
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                seen.append("worker thread")
            else:
                seen.append("event loop")
            return super().list_all()

    path = tmp_path / "products.json"
    JsonProductRepository.initialize(path)
    client = TestClient(create_app(Settings(admin_password=SECRET), repository=RecordingRepository(path)))
    assert client.get("/api/products").status_code == 200
    assert seen == ["worker thread"]
