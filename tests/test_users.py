"""Tests for user search and profiles."""

from tests.conftest import auth_headers


def search(client, user, query):
    return client.get("/api/v1/users/search", params={"query": query}, headers=auth_headers(user))


def test_search_matches_username_and_display_name(client, make_user, alice):
    bobby = make_user("bobby")
    robert = make_user("robert", display_name="Bob Roberts")

    response = search(client, alice, "BOB")

    assert response.status_code == 200
    assert [u["id"] for u in response.json()] == [bobby.id, robert.id]
    assert set(response.json()[0]) == {"id", "username", "displayName", "lastActive", "createdAt"}


def test_search_excludes_caller_and_banned_users(client, make_user, alice):
    make_user("alicia", is_banned=True)

    assert search(client, alice, "ali").json() == []


def test_empty_query_returns_nothing(client, alice, bob):
    assert search(client, alice, "  ").json() == []


def test_search_treats_wildcards_literally(client, make_user, alice, bob):
    make_user("under_score")

    assert [u["username"] for u in search(client, alice, "_").json()] == ["under_score"]
    assert search(client, alice, "%").json() == []


def test_search_requires_authentication(client):
    assert client.get("/api/v1/users/search", params={"query": "a"}).status_code == 401


def test_profile(client, alice, bob):
    response = client.get(f"/api/v1/users/profile/{bob.id}", headers=auth_headers(alice))

    assert response.status_code == 200
    assert response.json()["username"] == "bob"
    assert response.json()["displayName"] == "Bob"


def test_profile_of_unknown_user(client, alice):
    response = client.get("/api/v1/users/profile/missing", headers=auth_headers(alice))
    assert response.status_code == 404
