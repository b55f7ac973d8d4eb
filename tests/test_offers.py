from conftest import register

OFFERS = "/api/v1/offers"
VEGETABLES = "/api/v1/vegetables"


def add_vegetable(admin_client, name: str) -> str:
    resp = admin_client.post(
        VEGETABLES,
        json={
            "name": name,
            "image_url": f"https://cdn.example.com/{name.lower()}.jpg",
            "stock_kg": 10,
            "price_1kg": 40,
            "market_price_1kg": 60,
        },
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["id"]


def new_offer(admin_client, **overrides):
    payload = {"title": "Weekly Basket", "price": 199, "total_weight": 3}
    payload.update(overrides)
    return admin_client.post(OFFERS, json=payload)


def test_public_list_and_admin_crud(admin_client, client):
    tomato = add_vegetable(admin_client, "Tomato")
    onion = add_vegetable(admin_client, "Onion")

    resp = new_offer(
        admin_client,
        vegetable_ids=[tomato, onion, tomato],
        vegetable_limit=3,
        weight="500g",
    )
    assert resp.status_code == 201, resp.text
    offer = resp.json()["data"]
    assert offer["vegetable_ids"] == [tomato, onion]
    assert offer["click_count"] == 0

    listed = client.get(OFFERS).json()["data"]
    assert [o["title"] for o in listed] == ["Weekly Basket"]
    assert client.get(f"{OFFERS}/{offer['id']}").json()["data"]["weight"] == "500g"

    resp = admin_client.patch(f"{OFFERS}/{offer['id']}", json={"price": 179, "vegetable_ids": [onion]})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert (data["price"], data["vegetable_ids"]) == (179, [onion])

    assert admin_client.delete(f"{OFFERS}/{offer['id']}").status_code == 200
    resp = client.get(f"{OFFERS}/{offer['id']}")
    assert resp.status_code == 404
    assert resp.json()["message"] == "Offer not found"


def test_unknown_vegetable_is_rejected(admin_client):
    resp = new_offer(admin_client, vegetable_ids=["00000000-0000-0000-0000-000000000001"])
    assert resp.status_code == 400
    body = resp.json()
    assert body["message"] == "Unknown vegetable in offer"
    assert body["data"]["vegetable_ids"] == ["00000000-0000-0000-0000-000000000001"]


def test_vegetable_limit(admin_client):
    ids = [add_vegetable(admin_client, name) for name in ("Tomato", "Onion", "Potato")]
    resp = new_offer(admin_client, vegetable_ids=ids, vegetable_limit=2)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Offer allows at most 2 vegetables"

    offer = new_offer(admin_client, vegetable_ids=ids).json()["data"]
    resp = admin_client.patch(f"{OFFERS}/{offer['id']}", json={"vegetable_limit": 1})
    assert resp.status_code == 400


def test_clicks_are_counted(admin_client, client):
    offer = new_offer(admin_client).json()["data"]
    client.post(f"{OFFERS}/{offer['id']}/click")
    resp = client.post(f"{OFFERS}/{offer['id']}/click")
    assert resp.status_code == 200
    assert resp.json()["data"]["click_count"] == 2


def test_invalid_payloads(admin_client):
    assert new_offer(admin_client, price=0).status_code == 400
    assert new_offer(admin_client, weight="2kg").status_code == 400
    assert new_offer(admin_client, title="  ").status_code == 400
    assert new_offer(admin_client, click_count=5).status_code == 400


def test_offer_writes_need_admin(client):
    assert new_offer(client).status_code == 401
    register(client)
    assert new_offer(client).status_code == 403
