"""Tests for material catalog endpoints."""

from studyhub.core.entities import EducationLevel


class TestListMaterials:
    def test_empty_catalog(self, client):
        response = client.get("/api/materials")

        assert response.status_code == 200
        assert response.json() == {"materials": [], "count": 0}

    def test_filters(self, client, services, make_material):
        services.store.replace_all(
            "materials",
            [
                make_material("bio", uploaded_at="2024-01-01T00:00:00+00:00"),
                make_material(
                    "math",
                    title="Standard 8 Maths",
                    level=EducationLevel.PRIMARY,
                    grade="Standard 8",
                    subject="Mathematics",
                    uploaded_at="2024-02-01T00:00:00+00:00",
                ),
            ],
        )

        everything = client.get("/api/materials").json()
        assert [m["id"] for m in everything["materials"]] == ["math", "bio"]

        primary = client.get("/api/materials", params={"level": "Primary"}).json()
        assert [m["id"] for m in primary["materials"]] == ["math"]

        searched = client.get("/api/materials", params={"q": "maths"}).json()
        assert searched["count"] == 1

    def test_invalid_level(self, client):
        assert client.get("/api/materials", params={"level": "University"}).status_code == 422

    def test_get_material(self, client, material):
        response = client.get(f"/api/materials/{material.id}")

        assert response.status_code == 200
        assert response.json()["category"] == "Notes"

    def test_get_unknown(self, client):
        assert client.get("/api/materials/nope").status_code == 404


class TestRefresh:
    def test_refresh_replaces_cache(self, client, remote_client, material, make_material):
        rows = [make_material("r1").to_dict(), make_material("r2").to_dict()]
        remote_client.table.return_value.select.return_value.order.return_value.execute.return_value.data = rows

        response = client.post("/api/materials/refresh")

        assert response.json() == {"refreshed": True, "count": 2}
        assert client.get(f"/api/materials/{material.id}").status_code == 404

    def test_offline_refresh_keeps_cache(self, client, material):
        client.post("/api/sync/connectivity", json={"online": False})

        response = client.post("/api/materials/refresh")

        assert response.json() == {"refreshed": False, "count": 1}


class TestUserLists:
    def test_download(self, client, learner, material):
        url = f"/api/materials/{material.id}/download"
        client.post(url, json={"user_id": learner.id})
        response = client.post(url, json={"user_id": learner.id})

        assert response.status_code == 200
        assert response.json()["downloaded_ids"] == [material.id]

    def test_download_unknown_user(self, client, material):
        response = client.post(f"/api/materials/{material.id}/download", json={"user_id": "ghost"})
        assert response.status_code == 404

    def test_toggle_favorite(self, client, learner, material):
        url = f"/api/materials/{material.id}/favorite"

        assert client.post(url, json={"user_id": learner.id}).json()["is_favorite"] is True
        assert client.post(url, json={"user_id": learner.id}).json()["is_favorite"] is False
