import pytest

T = "/api/v1/testimonials"


def submit(client, **overrides):
    payload = {
        "name": "Ravi",
        "email": "Ravi@Example.com",
        "rating": 5,
        "comment": "Fresh vegetables, delivered on time!",
    }
    payload.update(overrides)
    return client.post(T, json=payload)


def test_submission_is_hidden_until_approved_and_published(client, admin_client):
    resp = submit(client)
    assert resp.status_code == 201
    created = resp.json()["data"]
    assert "email" not in created

    assert client.get(T).json()["data"]["total"] == 0

    admin_client.patch(f"{T}/admin/{created['id']}", json={"is_approved": True})
    assert client.get(T).json()["data"]["total"] == 0

    admin_client.patch(f"{T}/admin/{created['id']}", json={"is_published": True})
    page = client.get(T).json()["data"]
    assert page["total"] == 1
    assert "email" not in page["items"][0]


@pytest.mark.parametrize(
    "overrides",
    [
        {"rating": 0},
        {"rating": 6},
        {"comment": "too short"},
        {"comment": "x" * 501},
        {"email": "nope"},
        {"name": "n" * 101},
    ],
)
def test_submission_validation(client, overrides):
    assert submit(client, **overrides).status_code == 400


def test_admin_listing_filters_and_detail(client, admin_client):
    first = submit(client).json()["data"]
    submit(client, rating=3)
    admin_client.patch(f"{T}/admin/{first['id']}", json={"is_approved": True})

    page = admin_client.get(f"{T}/admin", params={"is_approved": "true"}).json()["data"]
    assert page["total"] == 1
    assert page["items"][0]["email"] == "ravi@example.com"

    assert admin_client.get(f"{T}/admin").json()["data"]["total"] == 2
    assert admin_client.get(f"{T}/admin/{first['id']}").status_code == 200


def test_public_rating_filter(client, admin_client):
    for rating in (5, 4):
        t = submit(client, rating=rating).json()["data"]
        admin_client.patch(
            f"{T}/admin/{t['id']}", json={"is_approved": True, "is_published": True}
        )
    page = client.get(T, params={"rating": 4}).json()["data"]
    assert [item["rating"] for item in page["items"]] == [4]


def test_moderation_needs_a_field(client, admin_client):
    t = submit(client).json()["data"]
    assert admin_client.patch(f"{T}/admin/{t['id']}", json={}).status_code == 400


def test_stats(client, admin_client):
    empty = admin_client.get(f"{T}/admin/stats").json()["data"]
    assert empty["total"] == 0
    assert empty["average_rating"] is None

    ids = [submit(client, rating=r).json()["data"]["id"] for r in (5, 4, 4)]
    admin_client.patch(f"{T}/admin/{ids[0]}", json={"is_approved": True, "is_published": True})

    stats = admin_client.get(f"{T}/admin/stats").json()["data"]
    assert stats["total"] == 3
    assert stats["approved"] == 1
    assert stats["published"] == 1
    assert stats["average_rating"] == pytest.approx(4.33, abs=0.01)
    assert stats["rating_distribution"] == [
        {"rating": 5, "count": 1},
        {"rating": 4, "count": 2},
    ]


def test_delete(client, admin_client):
    t = submit(client).json()["data"]
    assert admin_client.delete(f"{T}/admin/{t['id']}").status_code == 200
    assert admin_client.get(f"{T}/admin/{t['id']}").status_code == 404


def test_admin_routes_require_admin(client):
    assert client.get(f"{T}/admin").status_code == 401
