import pytest


@pytest.mark.django_db
class TestUpstreamIdentity:
    def test_ignored_by_default(self, api_client, guest):
        resp = api_client.get("/api/accounts/me/", HTTP_X_USER_ID=str(guest.id))
        assert resp.status_code == 401

    def test_trusted_header(self, settings, api_client, guest):
        settings.TRUST_UPSTREAM_IDENTITY = True
        resp = api_client.get("/api/accounts/me/", HTTP_X_USER_ID=str(guest.id))
        assert resp.status_code == 200
        assert resp.data["email"] == guest.email

    def test_role_header_is_not_trusted(self, settings, api_client, guest):
        settings.TRUST_UPSTREAM_IDENTITY = True
        resp = api_client.get(
            "/api/admin/dashboard-stats/", HTTP_X_USER_ID=str(guest.id), HTTP_X_USER_ROLE="admin"
        )
        assert resp.status_code == 403

    @pytest.mark.parametrize("raw", ["abc", "999999"])
    def test_unknown_user(self, settings, api_client, raw):
        settings.TRUST_UPSTREAM_IDENTITY = True
        resp = api_client.get("/api/accounts/me/", HTTP_X_USER_ID=raw)
        assert resp.status_code == 401
        assert resp.data["error"] == "Unknown user in X-User-Id header."
