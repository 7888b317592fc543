import pytest


@pytest.mark.django_db
class TestErrorShape:
    def test_not_found(self, api_client):
        resp = api_client.get("/api/properties/424242/")
        assert resp.status_code == 404
        assert set(resp.data) == {"error"}

    def test_unauthenticated(self, api_client):
        resp = api_client.get("/api/bookings/")
        assert resp.status_code == 401
        assert "error" in resp.data

    def test_validation_carries_details(self, client_for, host):
        resp = client_for(host).post("/api/properties/", {"title": ""}, format="json")
        assert resp.status_code == 400
        assert isinstance(resp.data["error"], str)
        assert "title" in resp.data["details"]


@pytest.mark.django_db
class TestPagination:
    @pytest.fixture
    def listings(self, host, property_factory):
        return [property_factory(host, title=f"Flat {i}") for i in range(12)]

    def test_default_page(self, api_client, listings):
        data = api_client.get("/api/properties/").data
        assert len(data["results"]) == 10
        assert data["pagination"] == {"total": 12, "page": 1, "pageSize": 10, "totalPages": 2}

    def test_page_size_and_limit_alias(self, api_client, listings):
        by_size = api_client.get("/api/properties/", {"pageSize": 5, "page": 3}).data
        assert len(by_size["results"]) == 2
        assert by_size["pagination"]["totalPages"] == 3

        by_limit = api_client.get("/api/properties/", {"limit": 4}).data
        assert by_limit["pagination"]["pageSize"] == 4

    def test_page_size_is_capped(self, api_client, listings):
        data = api_client.get("/api/properties/", {"pageSize": 1000}).data
        assert data["pagination"]["pageSize"] == 100

    def test_page_out_of_range(self, api_client, listings):
        resp = api_client.get("/api/properties/", {"page": 9})
        assert resp.status_code == 404
        assert "error" in resp.data


@pytest.mark.django_db
def test_api_root(api_client):
    resp = api_client.get("/api/")
    assert resp.status_code == 200
    assert resp.data["properties"].endswith("/api/properties/")
    assert resp.data["assistant"].endswith("/api/assistant/")
