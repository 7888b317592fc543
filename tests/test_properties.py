import io
from decimal import Decimal

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from PIL import Image

from analytics.models import SearchHistory, ViewHistory
from properties.models import MAX_IMAGES_PER_PROPERTY, Property, PropertyImage, PropertyManagerAssignment
from properties.serializers import PropertySerializer


def property_payload(**overrides):
    data = {
        "title": "Palm Villa",
        "description": "Private pool",
        "property_type": "villa",
        "price": "350.00",
        "address": "7 Frond Road",
        "city": "Dubai",
        "country": "UAE",
        "bedrooms": 4,
        "beds": 5,
        "bathrooms": "3.5",
        "max_guests": 8,
        "amenities": ["pool", "wifi", "pool", " "],
    }
    data.update(overrides)
    return data


@pytest.mark.django_db
class TestCatalogue:
    def test_list_shows_only_published(self, api_client, host, property_factory):
        visible = property_factory(host, title="Visible")
        property_factory(host, title="Draft", is_published=False)

        resp = api_client.get("/api/properties/")
        assert resp.status_code == 200
        ids = [row["id"] for row in resp.data["results"]]
        assert ids == [visible.id]
        assert resp.data["pagination"] == {"total": 1, "page": 1, "pageSize": 10, "totalPages": 1}

    def test_filters(self, api_client, host, property_factory):
        cheap = property_factory(host, title="Cheap", price=Decimal("50"), city="Riyadh", amenities=["WiFi"])
        big = property_factory(host, title="Big", price=Decimal("500"), bedrooms=5, max_guests=10,
                               amenities=["wifi", "pool", "gym"])

        def ids(query):
            return {row["id"] for row in api_client.get("/api/properties/", query).data["results"]}

        assert ids({"price_max": 100}) == {cheap.id}
        assert ids({"city": "riyadh"}) == {cheap.id}
        assert ids({"location": "riy"}) == {cheap.id}
        assert ids({"bedrooms": 3}) == {big.id}
        assert ids({"guests": 6}) == {big.id}
        assert ids({"amenities": "wifi"}) == {cheap.id, big.id}
        assert ids({"amenities": "wifi,pool"}) == {big.id}

    def test_search_is_recorded_for_authenticated_users(self, client_for, api_client, guest, prop):
        client_for(guest).get("/api/properties/", {"search": "marina"})
        api_client.get("/api/properties/", {"search": "anonymous"})
        assert list(SearchHistory.objects.values_list("search_query", flat=True)) == ["marina"]

    def test_retrieve_counts_views(self, client_for, guest, prop):
        resp = client_for(guest).get(f"/api/properties/{prop.id}/")
        assert resp.status_code == 200
        assert resp.data["views_count"] == 1
        assert ViewHistory.objects.filter(user=guest, property=prop).count() == 1

    def test_unpublished_hidden_from_public(self, api_client, client_for, host, property_factory):
        draft = property_factory(host, is_published=False)
        assert api_client.get(f"/api/properties/{draft.id}/").status_code == 404
        assert client_for(host).get(f"/api/properties/{draft.id}/").status_code == 200

    def test_unknown_property(self, api_client):
        resp = api_client.get("/api/properties/999999/")
        assert resp.status_code == 404
        assert "error" in resp.data

    def test_featured(self, api_client, host, property_factory):
        featured = property_factory(host, is_featured=True)
        property_factory(host)
        property_factory(host, is_featured=True, is_published=False)
        resp = api_client.get("/api/properties/featured/")
        assert [row["id"] for row in resp.data] == [featured.id]


@pytest.mark.django_db
class TestManagement:
    def test_host_creates_property(self, client_for, host):
        resp = client_for(host).post("/api/properties/", property_payload(), format="json")
        assert resp.status_code == 201
        prop = Property.objects.get(pk=resp.data["id"])
        assert prop.owner == host
        assert prop.amenities == ["pool", "wifi"]
        assert prop.is_published is False

    def test_guest_cannot_create(self, client_for, guest):
        resp = client_for(guest).post("/api/properties/", property_payload(), format="json")
        assert resp.status_code == 403

    def test_anonymous_cannot_create(self, api_client):
        resp = api_client.post("/api/properties/", property_payload(), format="json")
        assert resp.status_code == 401

    def test_validation(self, client_for, host):
        resp = client_for(host).post("/api/properties/", property_payload(price="0"), format="json")
        assert resp.status_code == 400
        assert "price" in resp.data["details"]

    def test_price_floor_is_decimal(self):
        field = PropertySerializer().fields["price"]
        assert isinstance(field.min_value, Decimal)
        assert field.min_value == Decimal("0.01")

    def test_only_owner_or_admin_updates(self, client_for, prop, other_guest, manager, admin):
        PropertyManagerAssignment.objects.create(property=prop, manager=manager)
        assert client_for(other_guest).patch(
            f"/api/properties/{prop.id}/", {"title": "Mine now"}, format="json"
        ).status_code == 403
        assert client_for(manager).patch(
            f"/api/properties/{prop.id}/", {"title": "Managed"}, format="json"
        ).status_code == 403
        resp = client_for(admin).patch(f"/api/properties/{prop.id}/", {"title": "Fixed"}, format="json")
        assert resp.status_code == 200
        assert resp.data["title"] == "Fixed"

    def test_delete(self, client_for, host, prop):
        assert client_for(host).delete(f"/api/properties/{prop.id}/").status_code == 204
        assert not Property.objects.filter(pk=prop.pk).exists()

    def test_toggle_publish(self, client_for, host, prop):
        resp = client_for(host).post(f"/api/properties/{prop.id}/toggle-publish/")
        assert resp.status_code == 200
        assert resp.data["is_published"] is False

    def test_mine_includes_managed(self, client_for, host, manager, property_factory):
        own = property_factory(manager, title="Own draft", is_published=False)
        managed = property_factory(host, title="Managed")
        property_factory(host, title="Other")
        PropertyManagerAssignment.objects.create(property=managed, manager=manager)

        resp = client_for(manager).get("/api/properties/mine/")
        assert resp.status_code == 200
        assert {row["id"] for row in resp.data["results"]} == {own.id, managed.id}

    def test_manager_assignment(self, client_for, host, prop, manager, other_guest):
        client = client_for(host)
        resp = client.post(f"/api/properties/{prop.id}/managers/", {"manager_id": manager.id}, format="json")
        assert resp.status_code == 201
        assert prop.is_managed_by(manager)

        wrong_role = client.post(f"/api/properties/{prop.id}/managers/", {"manager_id": other_guest.id}, format="json")
        assert wrong_role.status_code == 400

        listed = client.get(f"/api/properties/{prop.id}/managers/")
        assert [row["manager_id"] for row in listed.data] == [manager.id]

        assert client.delete(f"/api/properties/{prop.id}/managers/{manager.id}/").status_code == 204
        assert not prop.is_managed_by(manager)

    def test_managers_list_is_private(self, client_for, prop, other_guest):
        assert client_for(other_guest).get(f"/api/properties/{prop.id}/managers/").status_code == 403


@pytest.mark.django_db
class TestFeaturedAdmin:
    url = "/api/admin/properties/featured/"

    def test_admin_marks_featured(self, client_for, admin, prop):
        resp = client_for(admin).patch(self.url, {"propertyId": prop.id, "isFeatured": True}, format="json")
        assert resp.status_code == 200
        prop.refresh_from_db()
        assert prop.is_featured

    def test_requires_boolean(self, client_for, admin, prop):
        resp = client_for(admin).patch(self.url, {"propertyId": prop.id, "isFeatured": "yes"}, format="json")
        assert resp.status_code == 400

    def test_unknown_property(self, client_for, admin):
        resp = client_for(admin).patch(self.url, {"propertyId": 424242, "isFeatured": True}, format="json")
        assert resp.status_code == 404

    def test_host_forbidden(self, client_for, host, prop):
        resp = client_for(host).patch(self.url, {"propertyId": prop.id, "isFeatured": True}, format="json")
        assert resp.status_code == 403


def png_upload(name="room.png", color="white"):
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color).save(buf, format="PNG")
    return SimpleUploadedFile(name, buf.getvalue(), content_type="image/png")


@pytest.fixture
def media_root(settings, tmp_path):
    settings.MEDIA_ROOT = tmp_path
    return tmp_path


@pytest.mark.django_db
class TestImages:
    def add_image(self, prop, order, is_primary=False):
        return PropertyImage.objects.create(
            property=prop, image=png_upload(f"img{order}.png"), order=order, is_primary=is_primary
        )

    def test_upload_makes_first_image_primary(self, client_for, host, prop, media_root):
        resp = client_for(host).post(
            f"/api/properties/{prop.id}/images/",
            {"images": [png_upload("a.png"), png_upload("b.png", "blue")], "captions": ["Lounge"]},
            format="multipart",
        )

        assert resp.status_code == 201
        assert [row["caption"] for row in resp.data] == ["Lounge", ""]
        assert [row["is_primary"] for row in resp.data] == [True, False]
        assert prop.images.count() == 2

    def test_second_upload_keeps_primary(self, client_for, host, prop, media_root):
        first = self.add_image(prop, 1, is_primary=True)
        resp = client_for(host).post(
            f"/api/properties/{prop.id}/images/", {"images": [png_upload()]}, format="multipart"
        )
        assert resp.status_code == 201
        assert resp.data[0]["is_primary"] is False
        assert resp.data[0]["order"] == 2
        assert prop.images.get(is_primary=True) == first

    def test_image_cap(self, client_for, host, prop, media_root):
        for order in range(1, MAX_IMAGES_PER_PROPERTY):
            self.add_image(prop, order)

        resp = client_for(host).post(
            f"/api/properties/{prop.id}/images/",
            {"images": [png_upload("x.png"), png_upload("y.png")]},
            format="multipart",
        )
        assert resp.status_code == 400
        assert prop.images.count() == MAX_IMAGES_PER_PROPERTY - 1

    def test_not_an_image(self, client_for, host, prop, media_root):
        bogus = SimpleUploadedFile("notes.png", b"plain text", content_type="image/png")
        resp = client_for(host).post(
            f"/api/properties/{prop.id}/images/", {"images": [bogus]}, format="multipart"
        )
        assert resp.status_code == 400
        assert not prop.images.exists()

    def test_stranger_cannot_upload(self, client_for, other_guest, prop, media_root):
        resp = client_for(other_guest).post(
            f"/api/properties/{prop.id}/images/", {"images": [png_upload()]}, format="multipart"
        )
        assert resp.status_code == 403

    def test_deleting_primary_hands_over(self, client_for, host, prop, media_root):
        primary = self.add_image(prop, 1, is_primary=True)
        second = self.add_image(prop, 2)
        self.add_image(prop, 3)

        resp = client_for(host).delete(f"/api/properties/{prop.id}/images/{primary.id}/")

        assert resp.status_code == 204
        assert not PropertyImage.objects.filter(pk=primary.pk).exists()
        second.refresh_from_db()
        assert second.is_primary is True
        assert prop.images.filter(is_primary=True).count() == 1

    def test_delete_image_of_other_property(self, client_for, host, prop, property_factory, media_root):
        other = property_factory(host, title="Second home")
        foreign = self.add_image(other, 1)
        resp = client_for(host).delete(f"/api/properties/{prop.id}/images/{foreign.id}/")
        assert resp.status_code == 404
        assert PropertyImage.objects.filter(pk=foreign.pk).exists()

    def test_set_primary(self, client_for, host, prop, media_root):
        old = self.add_image(prop, 1, is_primary=True)
        new = self.add_image(prop, 2)

        resp = client_for(host).post(f"/api/properties/{prop.id}/images/{new.id}/set-primary/")

        assert resp.status_code == 200
        assert resp.data["is_primary"] is True
        old.refresh_from_db()
        assert old.is_primary is False
        assert list(prop.images.filter(is_primary=True)) == [new]

    def test_caption(self, client_for, host, prop, media_root):
        img = self.add_image(prop, 1)
        resp = client_for(host).patch(
            f"/api/properties/{prop.id}/images/{img.id}/caption/", {"caption": "Sea view"}, format="json"
        )
        assert resp.status_code == 200
        img.refresh_from_db()
        assert img.caption == "Sea view"
