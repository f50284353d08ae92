"""Tests for the project management API that feeds the core endpoints."""

import re

from app.core.security import SAFE_IDENTIFIER


class TestCreate:
    def test_create_project(self, client):
        resp = client.post(
            "/api/v1/projects",
            json={"name": "  Pricing page ", "domain": "shop.example.com", "description": ""},
        )
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["name"] == "Pricing page"
        assert data["domain"] == "shop.example.com"
        assert data["description"] is None
        assert data["is_active"] is True
        assert re.fullmatch(r"proj_[A-Za-z0-9_-]{12}", data["id"])
        assert SAFE_IDENTIFIER.fullmatch(data["id"])
        assert data["embed_script"].endswith(f"/s/{data['id']}\"></script>")

    def test_blank_name_rejected(self, client):
        resp = client.post("/api/v1/projects", json={"name": "   ", "domain": "example.com"})
        assert resp.status_code == 422

    def test_missing_domain_rejected(self, client):
        resp = client.post("/api/v1/projects", json={"name": "No domain"})
        assert resp.status_code == 422


class TestRead:
    def test_get_project_includes_stats(self, client, make_project):
        project = make_project()
        client.get("/track", params={"v": "v1", "p": project["id"], "var": "A"})

        resp = client.get(f"/api/v1/projects/{project['id']}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["stats"] == {"total_visitors": 1, "variations": {"A": 1, "B": 0, "C": 0, "D": 0}}

    def test_get_missing_project(self, client):
        assert client.get("/api/v1/projects/proj_missing").status_code == 404

    def test_list_projects_with_stats(self, client, make_project):
        first = make_project(name="First")
        second = make_project(name="Second")
        client.get("/track", params={"v": "v1", "p": second["id"], "var": "C"})

        resp = client.get("/api/v1/projects")
        assert resp.status_code == 200
        by_id = {p["id"]: p for p in resp.json()}
        assert set(by_id) == {first["id"], second["id"]}
        assert by_id[first["id"]]["stats"]["total_visitors"] == 0
        assert by_id[second["id"]]["stats"]["variations"]["C"] == 1

    def test_list_empty(self, client):
        assert client.get("/api/v1/projects").json() == []


class TestUpdate:
    def test_deactivate(self, client, make_project):
        project = make_project()
        resp = client.patch(f"/api/v1/projects/{project['id']}", json={"is_active": False})
        assert resp.status_code == 200
        assert resp.json()["is_active"] is False
        assert resp.json()["name"] == project["name"]

    def test_put_is_accepted(self, client, make_project):
        project = make_project()
        resp = client.put(
            f"/api/v1/projects/{project['id']}",
            json={"name": "Renamed", "description": "Hero copy test"},
        )
        assert resp.status_code == 200
        assert resp.json()["name"] == "Renamed"
        assert resp.json()["description"] == "Hero copy test"

    def test_id_is_immutable(self, client, make_project):
        project = make_project()
        resp = client.patch(f"/api/v1/projects/{project['id']}", json={"id": "proj_other", "name": "X"})
        assert resp.status_code == 200
        assert resp.json()["id"] == project["id"]

    def test_empty_update_rejected(self, client, make_project):
        project = make_project()
        resp = client.patch(f"/api/v1/projects/{project['id']}", json={})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "No fields to update"

    def test_null_name_rejected(self, client, make_project):
        project = make_project()
        resp = client.patch(f"/api/v1/projects/{project['id']}", json={"name": None})
        assert resp.status_code == 400

    def test_update_missing_project(self, client):
        resp = client.patch("/api/v1/projects/proj_missing", json={"name": "X"})
        assert resp.status_code == 404


class TestDelete:
    def test_delete(self, client, make_project):
        project = make_project()
        assert client.delete(f"/api/v1/projects/{project['id']}").status_code == 204
        assert client.get(f"/api/v1/projects/{project['id']}").status_code == 404

    def test_delete_missing(self, client):
        assert client.delete("/api/v1/projects/proj_missing").status_code == 404


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
