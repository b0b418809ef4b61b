import pytest

class TestPosts:
    """Blog posts"""

    @pytest.fixture
    def base_url(self):
        return "/api/posts"

    @pytest.fixture
    def post_data(self):
        return {
            "title": "Going solar in 2024",
            "slug": "going-solar",
            "content": {"type": "doc", "content": [{"type": "paragraph"}]},
            "seoKeywords": ["solar"],
        }

    def test_create_draft(self, client, editor_headers, post_data, base_url):
        response = client.post(base_url, json=post_data, headers=editor_headers)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["published"] is False
        assert data["publishedAt"] is None
        assert data["content"] == post_data["content"]

    def test_create_published_sets_timestamp(self, client, editor_headers, post_data, base_url):
        post_data["published"] = True
        data = client.post(base_url, json=post_data, headers=editor_headers).json()["data"]

        assert data["publishedAt"] is not None

    def test_duplicate_slug(self, client, editor_headers, post_data, base_url):
        client.post(base_url, json=post_data, headers=editor_headers)
        response = client.post(base_url, json=post_data, headers=editor_headers)

        assert response.status_code == 400

    def test_create_requires_auth(self, client, post_data, base_url):
        assert client.post(base_url, json=post_data).status_code == 401

    def test_get_by_id_or_slug(self, client, editor_headers, post_data, base_url):
        post_id = client.post(base_url, json=post_data, headers=editor_headers).json()["data"]["id"]

        by_id = client.get(f"{base_url}/{post_id}")
        by_slug = client.get(f"{base_url}/going-solar")

        assert by_id.json()["data"]["slug"] == "going-solar"
        assert by_slug.json()["data"]["id"] == post_id

    def test_missing_post(self, client, base_url):
        assert client.get(f"{base_url}/404").status_code == 404
        assert client.get(f"{base_url}/no-such-post").status_code == 404

    def test_public_listing_only_published(self, client, editor_headers, post_data, base_url):
        client.post(base_url, json=post_data, headers=editor_headers)
        client.post(
            base_url,
            json={**post_data, "slug": "live-post", "published": True},
            headers=editor_headers,
        )

        public = client.get(base_url, params={"public": "true"}).json()["data"]
        everything = client.get(base_url).json()["data"]

        assert [p["slug"] for p in public] == ["live-post"]
        assert len(everything) == 2

    def test_update_publishes(self, client, editor_headers, post_data, base_url):
        client.post(base_url, json=post_data, headers=editor_headers)
        response = client.put(f"{base_url}/going-solar", json={"published": True}, headers=editor_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["published"] is True
        assert data["publishedAt"] is not None
        assert data["title"] == post_data["title"]

    def test_update_slug_conflict(self, client, editor_headers, post_data, base_url):
        client.post(base_url, json=post_data, headers=editor_headers)
        client.post(base_url, json={**post_data, "slug": "other"}, headers=editor_headers)

        response = client.put(f"{base_url}/other", json={"slug": "going-solar"}, headers=editor_headers)

        assert response.status_code == 400
