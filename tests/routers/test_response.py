import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.anyio


def name_question_id(form: dict) -> str:
    return str(form["questions"][0]["id"])


async def submit(async_client: AsyncClient, form: dict, answer: str) -> dict:
    response = await async_client.post(
        f"/api/forms/{form['id']}/responses",
        json={"answers": {name_question_id(form): answer}},
    )
    return response.json()


async def test_submit_response_is_public(async_client: AsyncClient, created_form: dict):
    response = await async_client.post(
        f"/api/forms/{created_form['id']}/responses",
        json={"answers": {name_question_id(created_form): "Alice"}},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["formId"] == created_form["id"]
    assert body["answers"] == {name_question_id(created_form): "Alice"}


async def test_submit_response_missing_form(async_client: AsyncClient):
    response = await async_client.post("/api/forms/9999/responses", json={"answers": {}})

    assert response.status_code == 404


async def test_submit_response_invalid(async_client: AsyncClient, created_form: dict):
    response = await async_client.post(
        f"/api/forms/{created_form['id']}/responses", json={"answers": "Alice"}
    )

    assert response.status_code == 400


async def test_list_responses(async_client: AsyncClient, registered_user: dict, created_form: dict):
    submitted = await submit(async_client, created_form, "Alice")

    response = await async_client.get(
        f"/api/forms/{created_form['id']}/responses", headers=registered_user["headers"]
    )

    assert response.status_code == 200
    assert response.json() == [submitted]

    forms = await async_client.get("/api/forms", headers=registered_user["headers"])
    assert forms.json()[0]["responseCount"] == 1


async def test_list_responses_not_owner(async_client: AsyncClient, other_user: dict, created_form: dict):
    response = await async_client.get(
        f"/api/forms/{created_form['id']}/responses", headers=other_user["headers"]
    )

    assert response.status_code == 403


async def test_list_responses_requires_token(async_client: AsyncClient, created_form: dict):
    response = await async_client.get(f"/api/forms/{created_form['id']}/responses")

    assert response.status_code == 401


async def test_delete_response(async_client: AsyncClient, registered_user: dict, created_form: dict):
    submitted = await submit(async_client, created_form, "Alice")

    response = await async_client.delete(
        f"/api/responses/{submitted['id']}", headers=registered_user["headers"]
    )

    assert response.status_code == 204
    remaining = await async_client.get(
        f"/api/forms/{created_form['id']}/responses", headers=registered_user["headers"]
    )
    assert remaining.json() == []


async def test_delete_response_not_owner(async_client: AsyncClient, other_user: dict, created_form: dict):
    submitted = await submit(async_client, created_form, "Alice")

    response = await async_client.delete(
        f"/api/responses/{submitted['id']}", headers=other_user["headers"]
    )

    assert response.status_code == 403


async def test_delete_missing_response(async_client: AsyncClient, registered_user: dict):
    response = await async_client.delete("/api/responses/9999", headers=registered_user["headers"])

    assert response.status_code == 404
    assert response.json() == {"message": "Response not found"}
