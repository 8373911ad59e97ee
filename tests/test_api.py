from http import HTTPStatus

import pytest
from flask import Flask, g, request

from sacrud import SACRUDAPI


@pytest.fixture
def client(app: Flask, registry):
    @app.before_request
    def set_actor() -> None:
        g.actor = request.headers.get("X-Actor")

    api = SACRUDAPI(app, registry=registry)
    api.expose_registry(url_prefix="/api")
    return app.test_client()


def _create_user(client, email: str = "ann@example.com", **fields):
    return client.post("/api/users", json=dict(email=email, **fields))


def test_create_and_get(client) -> None:
    response = _create_user(client, fullName="Ann")
    assert response.status_code == HTTPStatus.CREATED
    user = response.get_json()

    response = client.get(f"/api/users/{user['code']}")
    assert response.status_code == HTTPStatus.OK
    assert response.get_json() == user
    assert "password" not in user


def test_list_with_parameters(client) -> None:
    for name in ("bob", "ann"):
        _create_user(client, email=f"{name}@example.com", username=name)

    response = client.get("/api/users?sort=username&limit=1&unknown=1")

    assert response.status_code == HTTPStatus.OK
    assert [user["username"] for user in response.get_json()] == ["ann"]


def test_not_found(client) -> None:
    response = client.get("/api/users/missing")

    assert response.status_code == HTTPStatus.NOT_FOUND
    error = response.get_json()["errors"][0]
    assert error["title"] == "NotFoundError"
    assert error["detail"] == "app:UserNotFound"
    assert error["code"] == 404


def test_duplicate_field(client) -> None:
    _create_user(client)
    response = _create_user(client)

    assert response.status_code == HTTPStatus.BAD_REQUEST
    error = response.get_json()["errors"][0]
    assert error["title"] == "DuplicateFieldError"
    assert error["msgCode"] == "DuplicateFieldError: email"
    assert len(client.get("/api/users").get_json()) == 1


def test_validation_errors(client) -> None:
    assert client.get("/api/users?limit=-1").status_code == HTTPStatus.BAD_REQUEST
    assert client.post("/api/users", json={"fullName": "no email"}).status_code == HTTPStatus.BAD_REQUEST
    response = client.post("/api/users", data="{not json", content_type="application/json")
    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.get_json()["errors"][0]["title"] == "ValidationError"


def test_update_and_delete(client) -> None:
    user = _create_user(client).get_json()

    response = client.patch(f"/api/users/{user['code']}", json={"fullName": "Ann Jones"})
    assert response.status_code == HTTPStatus.OK
    assert response.get_json()["fullName"] == "Ann Jones"

    response = client.put(f"/api/users/{user['code']}", json={})
    assert response.status_code == HTTPStatus.OK

    response = client.delete(f"/api/users/{user['code']}")
    assert response.status_code == HTTPStatus.OK
    assert response.get_json()["code"] == user["code"]
    assert client.delete(f"/api/users/{user['code']}").status_code == HTTPStatus.NOT_FOUND


def test_actor_is_taken_from_the_request(client, recorder) -> None:
    user = _create_user(client).get_json()

    response = client.post("/api/posts", json={"title": "Hello"}, headers={"X-Actor": user["code"]})
    assert response.status_code == HTTPStatus.CREATED
    assert response.get_json()["author"]["code"] == user["code"]

    mine = client.get("/api/posts?filter=my", headers={"X-Actor": user["code"]}).get_json()
    assert [post["title"] for post in mine] == ["Hello"]
    assert client.get("/api/posts?filter=my").get_json() == []
    assert [event.actor for event in recorder.events if event.resource == "posts"] == [user["code"]]


def test_unexpected_errors_are_hidden(client, users, monkeypatch) -> None:
    def broken(*args, **kwargs):
        raise RuntimeError("database on fire")

    monkeypatch.setattr(users, "list", broken)

    response = client.get("/api/users")

    assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    error = response.get_json()["errors"][0]
    assert error["title"] == "GenericError"
    assert "database on fire" not in error["detail"]


def test_query_endpoint(client) -> None:
    response = client.post("/api/query", json={"operation": "userCreate", "variables": {"email": "ann@example.com"}})
    assert response.status_code == HTTPStatus.OK
    user = response.get_json()["data"]

    response = client.post("/api/query", json={"operation": "user", "variables": {"code": user["code"]}})
    assert response.get_json()["data"] == user

    declared = client.get("/api/query").get_json()
    assert "userCreate" in declared["operations"]
    assert set(declared["types"]["User"]["properties"]) == set(user)

    assert client.post("/api/query", json={"variables": {}}).status_code == HTTPStatus.BAD_REQUEST
