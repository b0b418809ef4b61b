import pytest
from unittest.mock import AsyncMock, patch

from gogreen_admin.models import ActionType, AuditLog, Category, ChangeStatus, PendingChange, Product, YoutubeVideo

class TestPendingChanges:
    """Editor proposals and admin review"""

    @pytest.fixture
    def base_url(self):
        return "/api/pending-changes"

    @pytest.fixture
    def category_proposal(self, client, editor_headers, base_url):
        response = client.post(
            base_url,
            json={
                "action": "create",
                "resourceType": "category",
                "changeData": {"name": "Batteries", "slug": "batteries"},
            },
            headers=editor_headers,
        )
        assert response.status_code == 201
        return response.json()["data"]

    def test_submit_is_pending(self, category_proposal):
        assert category_proposal["status"] == "pending"
        assert category_proposal["reviewedBy"] is None

    def test_approve_applies_create(self, client, db, category_proposal, admin_headers, base_url):
        response = client.post(f"{base_url}/{category_proposal['id']}/approve", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "approved"
        assert data["resourceId"] is not None
        category = db.query(Category).filter_by(slug="batteries").one()
        assert str(category.id) == data["resourceId"]
        assert db.query(AuditLog).filter_by(action=ActionType.APPROVE).count() == 1

    def test_reject_leaves_store_untouched(self, client, db, category_proposal, admin_headers, base_url):
        response = client.post(
            f"{base_url}/{category_proposal['id']}/reject",
            json={"reviewNotes": "Duplicate of Storage"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "rejected"
        assert response.json()["data"]["reviewNotes"] == "Duplicate of Storage"
        assert db.query(Category).filter_by(slug="batteries").count() == 0

    @pytest.mark.parametrize("first,second", [
        ("approve", "approve"),
        ("approve", "reject"),
        ("reject", "approve"),
        ("reject", "reject"),
    ])
    def test_reviewed_change_cannot_move_again(
        self, client, db, category_proposal, admin_headers, base_url, first, second
    ):
        client.post(f"{base_url}/{category_proposal['id']}/{first}", headers=admin_headers)
        response = client.post(f"{base_url}/{category_proposal['id']}/{second}", headers=admin_headers)

        assert response.status_code == 409
        assert db.query(Category).filter_by(slug="batteries").count() == (1 if first == "approve" else 0)

    def test_editor_cannot_review(self, client, category_proposal, editor_headers, base_url):
        response = client.post(f"{base_url}/{category_proposal['id']}/approve", headers=editor_headers)

        assert response.status_code == 403

    def test_approve_update_records_previous_data(
        self, client, db, test_products, editor_headers, admin_headers, base_url
    ):
        product_id = str(test_products[2].id)
        proposal = client.post(
            base_url,
            json={
                "action": "update",
                "resourceType": "product",
                "resourceId": product_id,
                "changeData": {"price": "2500"},
            },
            headers=editor_headers,
        ).json()["data"]

        response = client.post(f"{base_url}/{proposal['id']}/approve", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["previousData"]["name"] == "Wind Turbine"
        assert db.get(Product, test_products[2].id).price == "2500"

    def test_approve_delete(self, client, db, test_products, editor_headers, admin_headers, base_url):
        proposal = client.post(
            base_url,
            json={"action": "delete", "resourceType": "product", "resourceId": str(test_products[2].id)},
            headers=editor_headers,
        ).json()["data"]

        client.post(f"{base_url}/{proposal['id']}/approve", headers=admin_headers)

        assert db.get(Product, test_products[2].id) is None

    def test_update_needs_resource_id(self, client, editor_headers, base_url):
        response = client.post(
            base_url,
            json={"action": "update", "resourceType": "product", "changeData": {"price": "1"}},
            headers=editor_headers,
        )

        assert response.status_code == 422

    def test_unsupported_resource_type(self, client, editor_headers, base_url):
        response = client.post(
            base_url,
            json={"action": "create", "resourceType": "user", "changeData": {}},
            headers=editor_headers,
        )

        assert response.status_code == 400

    def test_invalid_change_data(self, client, editor_headers, base_url):
        response = client.post(
            base_url,
            json={"action": "create", "resourceType": "category", "changeData": {"name": "No slug"}},
            headers=editor_headers,
        )

        assert response.status_code == 400

    def test_listing_scope(self, client, db, category_proposal, admin_user, editor_headers, admin_headers, base_url):
        db.add(PendingChange(
            user_id=admin_user.id, action=ActionType.CREATE, resource_type="category",
            change_data={"name": "X", "slug": "x"}, status=ChangeStatus.PENDING,
        ))
        db.commit()

        own = client.get(base_url, headers=editor_headers).json()["data"]
        everything = client.get(base_url, headers=admin_headers).json()["data"]
        approved = client.get(base_url, params={"status": "approved"}, headers=admin_headers).json()["data"]

        assert [c["id"] for c in own] == [category_proposal["id"]]
        assert len(everything) == 2
        assert approved == []

class TestVideoChanges:
    """Pending changes to homepage videos follow the direct video routes"""

    @pytest.fixture
    def base_url(self):
        return "/api/pending-changes"

    @pytest.fixture(autouse=True)
    def revalidate(self):
        with patch("gogreen_admin.pending_changes.revalidate_frontend", new_callable=AsyncMock) as mock:
            yield mock

    def test_submit_rejects_non_youtube_url(self, client, editor_headers, base_url):
        response = client.post(
            base_url,
            json={
                "action": "create",
                "resourceType": "youtube_video",
                "changeData": {"youtubeUrl": "https://example.com/not-a-video"},
            },
            headers=editor_headers,
        )

        assert response.status_code == 400
        assert "Invalid YouTube URL" in response.json()["detail"]

    def test_approve_rechecks_url(self, client, db, editor_user, admin_headers, base_url, revalidate):
        change = PendingChange(
            user_id=editor_user.id, action=ActionType.CREATE, resource_type="youtube_video",
            change_data={"youtubeUrl": "https://example.com/not-a-video"}, status=ChangeStatus.PENDING,
        )
        db.add(change)
        db.commit()

        response = client.post(f"{base_url}/{change.id}/approve", headers=admin_headers)

        assert response.status_code == 400
        assert db.query(YoutubeVideo).count() == 0
        assert db.get(PendingChange, change.id).status == ChangeStatus.PENDING
        revalidate.assert_not_awaited()

    def test_approve_revalidates_frontend(self, client, db, editor_headers, admin_headers, base_url, revalidate):
        proposal = client.post(
            base_url,
            json={
                "action": "create",
                "resourceType": "youtube_video",
                "changeData": {"youtubeUrl": "https://youtu.be/abc123"},
            },
            headers=editor_headers,
        ).json()["data"]

        response = client.post(f"{base_url}/{proposal['id']}/approve", headers=admin_headers)

        assert response.status_code == 200
        assert [v.youtube_url for v in db.query(YoutubeVideo)] == ["https://youtu.be/abc123"]
        revalidate.assert_awaited_once_with("youtube-videos")

    def test_category_approval_does_not_revalidate(self, client, editor_headers, admin_headers, base_url, revalidate):
        proposal = client.post(
            base_url,
            json={"action": "create", "resourceType": "category", "changeData": {"name": "Hydro", "slug": "hydro"}},
            headers=editor_headers,
        ).json()["data"]

        client.post(f"{base_url}/{proposal['id']}/approve", headers=admin_headers)

        revalidate.assert_not_awaited()
