CITIES = "/api/v1/cities"


def test_public_list_and_admin_crud(admin_client, client):
    resp = admin_client.post(
        CITIES, json={"name": " Pune ", "areas": ["Baner", " Aundh ", "Baner", ""]}
    )
    assert resp.status_code == 201
    city = resp.json()["data"]
    assert city["name"] == "Pune"
    assert city["areas"] == ["Baner", "Aundh"]

    listed = client.get(CITIES).json()["data"]
    assert [c["name"] for c in listed] == ["Pune"]

    resp = admin_client.patch(f"{CITIES}/{city['id']}", json={"areas": ["Kothrud"]})
    assert resp.status_code == 200
    assert resp.json()["data"]["areas"] == ["Kothrud"]
    assert resp.json()["data"]["name"] == "Pune"

    assert admin_client.delete(f"{CITIES}/{city['id']}").status_code == 200
    assert admin_client.delete(f"{CITIES}/{city['id']}").status_code == 404
    assert client.get(CITIES).json()["data"] == []


def test_duplicate_city_name(admin_client):
    admin_client.post(CITIES, json={"name": "Nashik"})
    resp = admin_client.post(CITIES, json={"name": "nashik"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "City already exists"


def test_rename_to_existing_city(admin_client):
    admin_client.post(CITIES, json={"name": "Nashik"})
    other = admin_client.post(CITIES, json={"name": "Pune"}).json()["data"]
    resp = admin_client.patch(f"{CITIES}/{other['id']}", json={"name": "Nashik"})
    assert resp.status_code == 400


def test_city_name_required(admin_client):
    assert admin_client.post(CITIES, json={"name": "   "}).status_code == 400


def test_city_writes_need_admin(client):
    assert client.post(CITIES, json={"name": "Pune"}).status_code == 401
