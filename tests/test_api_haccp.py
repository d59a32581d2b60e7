from datetime import date


def make_fridge(client, name="Kühlraum", temp_min=0, temp_max=4):
    res = client.post("/api/fridges", json={"name": name, "tempMin": temp_min, "tempMax": temp_max})
    assert res.status_code == 201, res.text
    return res.json()


def log(client, fridge_id, temperature, **extra):
    payload = {"fridgeId": fridge_id, "temperature": temperature}
    payload.update(extra)
    return client.post("/api/haccp-logs", json=payload)


def test_fridge_crud(user_client):
    fridge = make_fridge(user_client)
    assert fridge["tempMin"] == 0 and fridge["tempMax"] == 4

    assert user_client.post("/api/fridges", json={"name": "X", "tempMin": 5, "tempMax": 1}).status_code == 422

    res = user_client.put(f"/api/fridges/{fridge['id']}", json={"tempMax": 5})
    assert res.json()["tempMax"] == 5
    assert user_client.put(f"/api/fridges/{fridge['id']}", json={"tempMin": 8}).status_code == 400
    assert user_client.put("/api/fridges/999", json={"name": "Neu"}).status_code == 404

    assert [f["name"] for f in user_client.get("/api/fridges").json()] == ["Kühlraum"]
    assert user_client.get(f"/api/fridges/{fridge['id']}").status_code == 200
    assert user_client.delete(f"/api/fridges/{fridge['id']}").status_code == 204
    assert user_client.get(f"/api/fridges/{fridge['id']}").status_code == 404


def test_log_status_is_derived_from_range(user_client):
    fid = make_fridge(user_client)["id"]

    ok = log(user_client, fid, 2.5)
    assert ok.status_code == 201
    assert ok.json()["status"] == "OK"
    assert ok.json()["user"] == "Test Koch"

    assert log(user_client, fid, 6.0).json()["status"] == "WARNING"
    assert log(user_client, fid, 9.0).json()["status"] == "CRITICAL"
    assert log(user_client, fid, -1.0).json()["status"] == "WARNING"

    explicit = log(user_client, fid, 9.0, status="OK", user="Hygienebeauftragte", notes="Tür offen")
    assert explicit.json()["status"] == "OK"
    assert explicit.json()["user"] == "Hygienebeauftragte"
    assert explicit.json()["notes"] == "Tür offen"


def test_log_unknown_fridge(user_client):
    assert log(user_client, 999, 3.0).status_code == 404


def test_log_listing_filters_and_order(user_client):
    cold = make_fridge(user_client)["id"]
    freezer = make_fridge(user_client, "Tiefkühler", -22, -18)["id"]
    log(user_client, cold, 3.0, timestamp="2024-05-09T08:00:00")
    log(user_client, cold, 3.5, timestamp="2024-05-10T23:30:00")
    log(user_client, freezer, -19.0, timestamp="2024-05-11T07:00:00")

    temps = lambda res: [entry["temperature"] for entry in res.json()]  # noqa: E731
    assert temps(user_client.get("/api/haccp-logs")) == [-19.0, 3.5, 3.0]
    assert temps(user_client.get("/api/haccp-logs", params={"fridgeId": cold})) == [3.5, 3.0]
    assert temps(user_client.get("/api/haccp-logs", params={"start": "2024-05-10", "end": "2024-05-10"})) == [3.5]
    assert temps(user_client.get(f"/api/fridges/{freezer}/logs")) == [-19.0]
    assert user_client.get("/api/fridges/999/logs").status_code == 404


def test_deleting_fridge_removes_its_logs(user_client):
    fid = make_fridge(user_client)["id"]
    log(user_client, fid, 3.0)
    user_client.delete(f"/api/fridges/{fid}")
    assert user_client.get("/api/haccp-logs").json() == []


def test_haccp_export(user_client):
    cold = make_fridge(user_client)["id"]
    make_fridge(user_client, "Leer", 0, 5)
    for i in range(25):
        log(user_client, cold, 2.0 + i * 0.1)

    res = user_client.get("/api/haccp-logs/export")
    assert res.status_code == 200
    assert res.content.startswith(b"%PDF")
    assert f"HACCP_Bericht_{date.today().isoformat()}.pdf" in res.headers["content-disposition"]


def test_haccp_export_without_logs(user_client):
    res = user_client.get("/api/haccp-logs/export", params={"start": "2020-01-01", "end": "2020-01-31"})
    assert res.status_code == 200
    assert res.content.startswith(b"%PDF")


def test_dashboard(user_client):
    fid = make_fridge(user_client)["id"]
    log(user_client, fid, 3.0, timestamp="2024-05-01T08:00:00")
    log(user_client, fid, 7.0, timestamp="2024-05-02T08:00:00")
    make_fridge(user_client, "Tiefkühler", -22, -18)
    today = date.today().isoformat()
    user_client.post("/api/guests", json={"date": today, "meal": "lunch", "adults": 40, "children": 5})
    user_client.post("/api/guests", json={"date": today, "meal": "dinner", "adults": 20})
    user_client.post("/api/recipes", json={"name": "Tafelspitz", "category": "Mains"})

    board = user_client.get("/api/dashboard").json()
    assert board["recipeCount"] == 1
    assert board["fridgeCount"] == 2
    assert board["warningCount"] == 1
    assert [entry["temperature"] for entry in board["latestLogs"]] == [7.0]
    assert board["guestsToday"] == 65
    assert board["guestsTodayByMeal"] == {"lunch": 45, "dinner": 20}


def test_non_finite_temperatures_rejected(user_client):
    headers = {"Content-Type": "application/json"}
    res = user_client.post("/api/fridges", content='{"name": "X", "tempMin": NaN, "tempMax": 4}', headers=headers)
    assert res.status_code == 422

    fid = make_fridge(user_client)["id"]
    body = '{"fridgeId": %d, "temperature": Infinity}' % fid
    assert user_client.post("/api/haccp-logs", content=body, headers=headers).status_code == 422
    assert user_client.get("/api/haccp-logs").json() == []
