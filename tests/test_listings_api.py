"""
Listing wizard API tests - multipart images step, resume, publish and retry.
"""

import pytest
from httpx import AsyncClient

DETAILS = {
    "title": "Drill Set",
    "description": "Cordless drill with two batteries",
    "category": "tools",
    "condition": "used",
    "listing_type": "sell",
    "sale_price": "45",
}


def _files(png, count: int = 2) -> list:
    return [("files", (f"photo{i}.png", png(), "image/png")) for i in range(count)]


async def _create_draft(client: AsyncClient, headers: dict, png, mode: str = "with_ai", count: int = 2):
    return await client.post(
        "/api/v1/listings/drafts", headers=headers, files=_files(png, count), data={"mode": mode}
    )


@pytest.mark.asyncio
async def test_draft_with_ai_prefills_details(client: AsyncClient, auth_headers: dict, png, generator):
    response = await _create_draft(client, auth_headers, png)
    assert response.status_code == 201, response.text
    state = response.json()
    assert state["step"] == "details"
    assert state["processing_state"] == "completed"
    assert state["progress"] == 100
    assert state["suggestion"]["title"] == "Drill Set"
    assert state["form"]["title"] == "Drill Set"
    assert state["form"]["sale_price"] == "45.00"
    assert state["notices"][-1]["title"] == "AI Ready"
    assert len(generator.calls) == 1

    item = (await client.get(f"/api/v1/items/{state['item_id']}", headers=auth_headers)).json()
    assert item["status"] == "draft"
    assert [img["display_order"] for img in item["images"]] == [0, 1]


@pytest.mark.asyncio
async def test_draft_ai_failure_still_reaches_details(client: AsyncClient, auth_headers: dict, png, generator):
    generator.fail()
    response = await _create_draft(client, auth_headers, png)
    assert response.status_code == 201
    state = response.json()
    assert state["step"] == "details"
    assert state["suggestion"] is None
    assert state["form"]["title"] == ""
    assert state["notices"][-1]["title"] == "AI Failed"

    # The seller retries once the model is back
    generator.error = None
    retried = await client.post(f"/api/v1/listings/{state['item_id']}/retry", headers=auth_headers)
    assert retried.status_code == 200
    assert retried.json()["suggestion"]["title"] == "Drill Set"


@pytest.mark.asyncio
async def test_with_ai_requires_images(client: AsyncClient, auth_headers: dict):
    response = await client.post("/api/v1/listings/drafts", headers=auth_headers, data={"mode": "with_ai"})
    assert response.status_code == 422
    assert response.json()["detail"] == "Please upload at least one image to use AI processing."


@pytest.mark.asyncio
async def test_too_many_images_rejected(client: AsyncClient, auth_headers: dict, png):
    response = await _create_draft(client, auth_headers, png, mode="skip_ai", count=9)
    assert response.status_code == 422
    mine = await client.get("/api/v1/items/mine", headers=auth_headers)
    assert mine.json() == []


@pytest.mark.asyncio
async def test_resume_and_publish_draft(client: AsyncClient, auth_headers: dict, png):
    state = (await _create_draft(client, auth_headers, png)).json()
    item_id = state["item_id"]

    resumed = await client.get(f"/api/v1/listings/{item_id}", headers=auth_headers)
    assert resumed.status_code == 200
    assert resumed.json()["form"]["category"] == "tools"

    response = await client.post(f"/api/v1/listings/{item_id}/publish", headers=auth_headers, json=DETAILS)
    assert response.status_code == 200
    item = response.json()
    assert item["id"] == item_id
    assert item["status"] == "available"
    assert item["sale_price"] == 45
    assert len(item["images"]) == 2

    again = await client.post(f"/api/v1/listings/{item_id}/publish", headers=auth_headers, json=DETAILS)
    assert again.status_code == 422


@pytest.mark.asyncio
async def test_publish_as_new_item_removes_draft(client: AsyncClient, auth_headers: dict, png):
    state = (await _create_draft(client, auth_headers, png, mode="skip_ai")).json()
    draft_id = state["item_id"]

    response = await client.post(
        f"/api/v1/listings/{draft_id}/publish",
        headers=auth_headers,
        params={"promote_draft": "false"},
        json=DETAILS,
    )
    assert response.status_code == 200
    item = response.json()
    assert item["id"] != draft_id
    assert len(item["images"]) == 2
    assert (await client.get(f"/api/v1/items/{draft_id}", headers=auth_headers)).status_code == 404


@pytest.mark.asyncio
async def test_publish_missing_fields(client: AsyncClient, auth_headers: dict, png):
    state = (await _create_draft(client, auth_headers, png, mode="skip_ai")).json()
    response = await client.post(
        f"/api/v1/listings/{state['item_id']}/publish", headers=auth_headers, json={"title": "Drill"}
    )
    assert response.status_code == 422
    assert response.json()["missing_fields"] == ["category", "condition", "listing_type"]


@pytest.mark.asyncio
async def test_publish_without_images(client: AsyncClient, auth_headers: dict):
    response = await client.post(
        "/api/v1/listings",
        headers=auth_headers,
        json={**DETAILS, "category": "rooms", "listing_type": "rent", "rental_price": "300", "rental_period": "weekly"},
    )
    assert response.status_code == 201
    item = response.json()
    assert item["category"] == "rooms"
    assert item["rental_period"] == "weekly"
    assert item["images"] == []


@pytest.mark.asyncio
async def test_only_owner_can_resume(client: AsyncClient, auth_headers: dict, other_headers: dict, png):
    state = (await _create_draft(client, auth_headers, png, mode="skip_ai")).json()
    response = await client.get(f"/api/v1/listings/{state['item_id']}", headers=other_headers)
    assert response.status_code == 403
    assert response.json()["code"] == "authorization_error"


@pytest.mark.asyncio
async def test_latest_job_missing_for_inline_draft(client: AsyncClient, auth_headers: dict, png):
    state = (await _create_draft(client, auth_headers, png)).json()
    response = await client.get(f"/api/v1/jobs/{state['item_id']}/latest", headers=auth_headers)
    assert response.status_code == 404
