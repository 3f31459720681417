"""
Item API tests - browse, detail, owner edits and image management (TDD).
Challenge: Ensure endpoints return correct status codes and shape.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_list_items_empty(client: AsyncClient):
    """GET /api/v1/items returns 200 and list (possibly empty)."""
    response = await client.get("/api/v1/items")
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_categories_come_from_table(client: AsyncClient):
    response = await client.get("/api/v1/items/categories")
    assert response.status_code == 200
    assert "tools" in response.json()
    assert "rooms" in response.json()


@pytest.mark.asyncio
async def test_browse_lists_published_item(client: AsyncClient, published_item):
    response = await client.get("/api/v1/items", params={"category": "tools"})
    assert response.status_code == 200
    data = response.json()
    assert [i["id"] for i in data] == [published_item.id]
    assert data[0]["status"] == "available"

    response = await client.get("/api/v1/items", params={"category": "books"})
    assert response.json() == []


@pytest.mark.asyncio
async def test_get_item_images_ordered_primary_first(client: AsyncClient, published_item):
    response = await client.get(f"/api/v1/items/{published_item.id}")
    assert response.status_code == 200
    images = response.json()["images"]
    assert [img["display_order"] for img in images] == [0, 1, 2]
    assert [img["is_primary"] for img in images] == [True, False, False]


@pytest.mark.asyncio
async def test_get_item_404(client: AsyncClient):
    response = await client.get("/api/v1/items/does-not-exist")
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


@pytest.mark.asyncio
async def test_update_requires_auth(client: AsyncClient, published_item):
    """PATCH without token returns 401."""
    response = await client.patch(f"/api/v1/items/{published_item.id}", json={"title": "Other"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_update_by_owner(client: AsyncClient, auth_headers: dict, published_item):
    response = await client.patch(
        f"/api/v1/items/{published_item.id}",
        headers=auth_headers,
        json={"title": "Drill Set Pro", "status": "reserved"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Drill Set Pro"
    assert data["status"] == "reserved"


@pytest.mark.asyncio
async def test_update_by_non_owner_forbidden(client: AsyncClient, other_headers: dict, published_item):
    response = await client.patch(
        f"/api/v1/items/{published_item.id}", headers=other_headers, json={"title": "Mine now"}
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_update_rooms_cannot_be_sold(client: AsyncClient, auth_headers: dict, published_item):
    response = await client.patch(
        f"/api/v1/items/{published_item.id}",
        headers=auth_headers,
        json={"category": "rooms", "listing_type": "sell"},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_my_items(client: AsyncClient, auth_headers: dict, other_headers: dict, published_item):
    mine = await client.get("/api/v1/items/mine", headers=auth_headers)
    assert [i["id"] for i in mine.json()] == [published_item.id]
    theirs = await client.get("/api/v1/items/mine", headers=other_headers)
    assert theirs.json() == []


@pytest.mark.asyncio
async def test_delete_by_owner(client: AsyncClient, auth_headers: dict, published_item):
    response = await client.delete(f"/api/v1/items/{published_item.id}", headers=auth_headers)
    assert response.status_code == 204
    assert (await client.get(f"/api/v1/items/{published_item.id}")).status_code == 404


@pytest.mark.asyncio
async def test_delete_by_non_owner_forbidden(client: AsyncClient, other_headers: dict, published_item):
    response = await client.delete(f"/api/v1/items/{published_item.id}", headers=other_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_reorder_images_keeps_single_primary(client: AsyncClient, auth_headers: dict, published_item):
    before = [img.id for img in published_item.images]
    response = await client.put(
        f"/api/v1/items/{published_item.id}/images/order",
        headers=auth_headers,
        json={"from_index": 2, "to_index": 0},
    )
    assert response.status_code == 200
    images = response.json()
    assert [img["id"] for img in images] == [before[2], before[0], before[1]]
    assert [img["is_primary"] for img in images] == [True, False, False]
    assert [img["display_order"] for img in images] == [0, 1, 2]

    stored = (await client.get(f"/api/v1/items/{published_item.id}")).json()["images"]
    assert [img["id"] for img in stored] == [before[2], before[0], before[1]]


@pytest.mark.asyncio
async def test_remove_primary_promotes_next(client: AsyncClient, auth_headers: dict, published_item):
    ids = [img.id for img in published_item.images]
    response = await client.delete(f"/api/v1/items/{published_item.id}/images/{ids[0]}", headers=auth_headers)
    assert response.status_code == 200

    stored = (await client.get(f"/api/v1/items/{published_item.id}")).json()["images"]
    assert [img["id"] for img in stored] == ids[1:]
    assert stored[0]["is_primary"] is True
    assert [img["display_order"] for img in stored] == [0, 1]


@pytest.mark.asyncio
async def test_add_images_appends_and_reports_rejections(
    client: AsyncClient, auth_headers: dict, published_item, png
):
    files = [
        ("files", ("d.png", png(), "image/png")),
        ("files", ("notes.txt", b"hello", "text/plain")),
    ]
    response = await client.post(f"/api/v1/items/{published_item.id}/images", headers=auth_headers, files=files)
    assert response.status_code == 201
    data = response.json()
    assert [img["display_order"] for img in data["images"]] == [0, 1, 2, 3]
    assert len(data["rejected"]) == 1
    assert "notes.txt" in data["rejected"][0]


@pytest.mark.asyncio
async def test_add_images_over_limit_rejected(client: AsyncClient, auth_headers: dict, published_item, png):
    files = [("files", (f"{i}.png", png(20, 20), "image/png")) for i in range(6)]
    response = await client.post(f"/api/v1/items/{published_item.id}/images", headers=auth_headers, files=files)
    assert response.status_code == 422
    assert "Maximum 8 images" in response.json()["detail"]
    stored = (await client.get(f"/api/v1/items/{published_item.id}")).json()["images"]
    assert len(stored) == 3


@pytest.mark.asyncio
async def test_signed_url_serves_resized_image(client: AsyncClient, published_item):
    image_id = published_item.images[0].id
    response = await client.get(
        f"/api/v1/items/{published_item.id}/images/{image_id}/signed-url", params={"width": 200}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["expires_in"] == 60
    assert "/storage/v1/object/sign/item-images/" in data["url"]

    image = await client.get(data["url"])
    assert image.status_code == 200
    assert image.headers["content-type"] == "image/jpeg"


@pytest.mark.asyncio
async def test_signed_url_rejects_bad_token(client: AsyncClient, published_item):
    url = published_item.images[0].image_url.replace("/object/public/", "/object/sign/")
    response = await client.get(url, params={"token": "nope"})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_public_image_served(client: AsyncClient, published_item):
    response = await client.get(published_item.images[0].image_url)
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
