from gogreen_admin.models import ActionType

def create_category(client, headers, slug):
    return client.post("/api/categories", json={"name": slug.title(), "slug": slug}, headers=headers)

def test_mutations_are_listed(client, admin_headers):
    create_category(client, admin_headers, "wind")
    create_category(client, admin_headers, "hydro")

    response = client.get("/api/audit", headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["total"] == 2
    assert body["pages"] == 1
    assert {e["action"] for e in body["data"]} == {"create"}
    assert body["data"][0]["resourceType"] == "category"

def test_filters(client, admin_headers, admin_user, editor_user):
    create_category(client, admin_headers, "wind")
    category_id = create_category(client, admin_headers, "hydro").json()["data"]["id"]
    client.delete(f"/api/categories/{category_id}", headers=admin_headers)

    deletes = client.get("/api/audit", params={"action": ActionType.DELETE.value}, headers=admin_headers).json()
    by_admin = client.get("/api/audit", params={"userId": str(admin_user.id)}, headers=admin_headers).json()
    by_editor = client.get("/api/audit", params={"userId": str(editor_user.id)}, headers=admin_headers).json()
    products = client.get("/api/audit", params={"resourceType": "product"}, headers=admin_headers).json()

    assert deletes["total"] == 1
    assert deletes["data"][0]["resourceId"] == category_id
    assert by_admin["total"] == 3
    assert by_editor["total"] == 0
    assert products["total"] == 0

def test_pagination(client, admin_headers):
    for slug in ("a-one", "b-two", "c-three"):
        create_category(client, admin_headers, slug)

    response = client.get("/api/audit", params={"page": 2, "limit": 2}, headers=admin_headers).json()

    assert response["total"] == 3
    assert response["pages"] == 2
    assert len(response["data"]) == 1

def test_requires_admin(client, editor_headers):
    assert client.get("/api/audit", headers=editor_headers).status_code == 403
