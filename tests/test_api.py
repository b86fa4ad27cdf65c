from uuid import uuid4

from conftest import day


def create_plant(client, **overrides):
    payload = {"name": "Northern Lights #1", "medium": "coco"}
    payload.update(overrides)
    response = client.post("/api/plants", json=payload)
    assert response.status_code == 200, response.text
    return response.json()


def abc_phases(*starts):
    specs = [("A", 1, 3), ("B", 2, 5), ("C", 3, 10)]
    starts = list(starts) + [None] * (len(specs) - len(starts))
    return [
        {
            "id": f"phase-{name.lower()}",
            "name": name,
            "duration_min": duration_min,
            "duration_max": duration_max,
            "start_date": start.isoformat() if start else None,
        }
        for (name, duration_min, duration_max), start in zip(specs, starts)
    ]


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_create_plant_with_default_phases(client):
    plant = create_plant(client)

    assert plant["phases"][0]["name"] == "Germination"
    assert plant["phases"][0]["start_date"] is not None
    assert all(p["start_date"] is None for p in plant["phases"][1:])
    assert plant["current_phase_name"] == "Germination"
    assert plant["version"] == 1


def test_create_autoflower_plant(client):
    plant = create_plant(client, plant_type="autoflower")
    names = [p["name"] for p in plant["phases"]]
    assert "Pre-Flower" not in names
    assert len(names) == 7


def test_plant_crud(client):
    plant = create_plant(client)

    response = client.put(f"/api/plants/{plant['id']}", json={"notes": "Topped at node 5", "pot_size_liters": 20})
    assert response.status_code == 200
    assert response.json()["notes"] == "Topped at node 5"
    assert response.json()["version"] == 2

    assert plant["id"] in [p["id"] for p in client.get("/api/plants").json()]

    assert client.delete(f"/api/plants/{plant['id']}").json()["status"] == "success"
    assert client.get(f"/api/plants/{plant['id']}").status_code == 404


def test_unknown_plant_is_404(client):
    assert client.get("/api/plants/999999").status_code == 404
    assert client.get("/api/plants/999999/timeline").status_code == 404


def test_timeline_endpoint(client):
    plant = create_plant(client, phases=abc_phases(day(0), day(3)))

    response = client.get(f"/api/plants/{plant['id']}/timeline", params={"now": day(10).isoformat()})
    assert response.status_code == 200
    body = response.json()

    assert body["summary"]["current_phase_name"] == "B"
    assert body["summary"]["is_overdue"] is True
    assert [info["days_elapsed"] for info in body["timeline"]] == [3, 7, 0]
    assert body["timeline"][0]["is_completed"] is True


def test_timeline_rejects_bad_now(client):
    plant = create_plant(client)
    response = client.get(f"/api/plants/{plant['id']}/timeline", params={"now": "not-a-date"})
    assert response.status_code == 400


def test_start_date_validation(client):
    plant = create_plant(client, phases=abc_phases(day(0), None, day(12)))
    url = f"/api/plants/{plant['id']}/phases/phase-b"

    rejected = client.put(f"{url}/start-date", json={"start_date": day(15).isoformat()})
    assert rejected.status_code == 400
    assert "later than next phase start date" in rejected.json()["detail"]

    date_range = client.get(f"{url}/date-range").json()
    assert date_range["min_date"].startswith("2024-03-01")
    assert date_range["max_date"].startswith("2024-03-13")

    accepted = client.put(f"{url}/start-date", json={"start_date": day(5).isoformat()})
    assert accepted.status_code == 200

    cleared = client.put(f"/api/plants/{plant['id']}/phases/phase-c/start-date", json={"start_date": None})
    assert cleared.status_code == 200
    assert cleared.json()["summary"]["current_phase_id"] == "phase-b"


def test_delete_phase_rules(client):
    plant = create_plant(client, phases=abc_phases(day(0)))
    base = f"/api/plants/{plant['id']}/phases"

    started = client.delete(f"{base}/phase-a")
    assert started.status_code == 400
    assert "already started" in started.json()["detail"]

    assert client.delete(f"{base}/missing").status_code == 404
    response = client.delete(f"{base}/phase-c")
    assert response.status_code == 200
    assert [info["phase"]["name"] for info in response.json()["timeline"]] == ["A", "B"]


def test_delete_only_phase_rejected(client):
    plant = create_plant(client, phases=abc_phases()[:1])
    response = client.delete(f"/api/plants/{plant['id']}/phases/phase-a")
    assert response.status_code == 400
    assert response.json()["detail"] == "Must have at least one phase"


def test_advance(client):
    plant = create_plant(client)
    url = f"/api/plants/{plant['id']}/phases/advance"

    # Germination started moments ago, minimum not met yet
    assert client.post(url).status_code == 400

    response = client.post(url, params={"force": True})
    assert response.status_code == 200
    assert response.json()["summary"]["current_phase_name"] == "Seedling"


def test_reorder_move_insert_and_edit(client):
    plant = create_plant(client, phases=abc_phases(day(0)))
    base = f"/api/plants/{plant['id']}/phases"

    bad = client.put(f"{base}/order", json={"phase_ids": ["phase-a"]})
    assert bad.status_code == 400

    reordered = client.put(f"{base}/order", json={"phase_ids": ["phase-b", "phase-a", "phase-c"]})
    assert [p["phase"]["id"] for p in reordered.json()["timeline"]] == ["phase-b", "phase-a", "phase-c"]

    moved = client.post(f"{base}/move", json={"from_index": 2, "to_index": 0})
    assert moved.json()["timeline"][0]["phase"]["id"] == "phase-c"

    inserted = client.post(f"{base}", json={
        "template": {"name": "Flush", "duration_min": 7, "duration_max": 14},
        "position": 1,
    })
    assert inserted.json()["timeline"][1]["phase"]["name"] == "Flush"

    edited = client.patch(f"{base}/phase-c", json={"name": "Bloom", "counts_toward_harvest_estimate": True})
    assert edited.status_code == 200
    assert edited.json()["timeline"][0]["phase"]["name"] == "Bloom"

    invalid = client.patch(f"{base}/phase-c", json={"duration_min": 50})
    assert invalid.status_code == 400


def test_blank_phase_name_rejected(client):
    plant = create_plant(client, phases=abc_phases(day(0)))
    base = f"/api/plants/{plant['id']}"

    blank = client.patch(f"{base}/phases/phase-b", json={"name": "   "})
    assert blank.status_code == 400

    reloaded = client.get(base)
    assert reloaded.status_code == 200
    assert [p["name"] for p in reloaded.json()["phases"]] == ["A", "B", "C"]
    assert client.get(f"{base}/timeline").status_code == 200


def test_plant_name_required(client):
    assert client.post("/api/plants", json={"name": ""}).status_code == 422

    plant = create_plant(client)
    assert client.put(f"/api/plants/{plant['id']}", json={"name": ""}).status_code == 422
    assert client.get(f"/api/plants/{plant['id']}").json()["name"] == "Northern Lights #1"


def test_import_export_phases(client):
    plant = create_plant(client)
    base = f"/api/plants/{plant['id']}/phases"

    response = client.put(base, json=abc_phases(day(0)))
    assert response.status_code == 200
    assert len(client.get(base).json()) == 3

    exported = client.get(f"{base}/export").json()
    assert [t["name"] for t in exported] == ["A", "B", "C"]
    assert "start_date" not in exported[0]

    assert client.put(base, json=[]).status_code == 400
    assert client.put(base, json=[{"name": "A", "duration_min": 1}]).status_code == 422


def test_events_flow(client):
    plant = create_plant(client, phases=abc_phases(day(0), day(3)))
    base = f"/api/plants/{plant['id']}/events"

    created = client.post(base, json={
        "type": "watering",
        "title": "Plain Water",
        "data": {"amount_ml": 500, "ph_level": 6.2},
        "timestamp": day(9).isoformat(),
    })
    assert created.status_code == 200
    event = created.json()
    assert event["phase_id"] == "phase-b"

    client.post(base, json={"type": "feeding", "title": "Bloom", "timestamp": day(6).isoformat()})

    assert [e["title"] for e in client.get(base).json()] == ["Plain Water", "Bloom"]
    assert len(client.get(base, params={"type": "feeding"}).json()) == 1
    assert len(client.get(base, params={"phase_id": "phase-b"}).json()) == 2

    days = client.get(f"{base}/days-since", params={"type": "watering", "now": day(10).isoformat()}).json()
    assert days["days"] == 1

    stats = client.get(f"{base}/stats", params={"now": day(10).isoformat()}).json()
    assert stats["total"] == 2 and stats["this_week"] == 2

    updated = client.patch(f"{base}/{event['id']}", json={"notes": "Runoff looked good"})
    assert updated.json()["id"] == event["id"]
    assert updated.json()["notes"] == "Runoff looked good"

    assert client.patch(f"{base}/missing", json={"notes": "x"}).status_code == 404
    assert client.delete(f"{base}/{event['id']}").status_code == 200
    assert len(client.get(base).json()) == 1


def test_event_types(client):
    body = client.get("/api/event-types").json()
    assert "watering" in body["types"]
    assert body["quick_templates"]["training"][0]["title"] == "LST"


def test_strain_templates_drive_new_plants(client):
    name = f"Test Kush {uuid4().hex[:6]}"
    strain = client.post("/api/strains", json={
        "name": name,
        "type": "indica",
        "flowering_time_min": 56,
        "flowering_time_max": 63,
        "phase_templates": [
            {"name": "Seedling", "duration_min": 7, "duration_max": 14},
            {"name": "Flower", "duration_min": 56, "duration_max": 63, "counts_toward_harvest_estimate": True},
        ],
    })
    assert strain.status_code == 200, strain.text
    strain_id = strain.json()["id"]

    assert client.post("/api/strains", json={
        "name": name, "flowering_time_min": 1, "flowering_time_max": 2
    }).status_code == 409

    preview = client.get(f"/api/strains/{strain_id}/phases").json()
    assert [p["name"] for p in preview] == ["Seedling", "Flower"]

    plant = create_plant(client, strain_id=strain_id)
    assert plant["strain"] == name
    assert [p["name"] for p in plant["phases"]] == ["Seedling", "Flower"]

    by_name = create_plant(client, strain=name)
    assert by_name["strain_id"] == strain_id

    timeline = client.get(f"/api/plants/{plant['id']}/timeline").json()
    assert timeline["summary"]["days_until_harvest"] is not None


def test_strain_validation(client):
    response = client.post("/api/strains", json={
        "name": f"Bad {uuid4().hex[:6]}", "flowering_time_min": 70, "flowering_time_max": 50
    })
    assert response.status_code == 422
    assert client.get("/api/strains/999999").status_code == 404
    assert client.post("/api/plants", json={"name": "x", "strain_id": 999999}).status_code == 404


def test_websocket_sends_state_on_connect(client):
    plant = create_plant(client)

    with client.websocket_connect(f"/ws/plants/{plant['id']}") as ws:
        state = ws.receive_json()
        assert state["type"] == "phase_state"
        assert state["current_phase_name"] == "Germination"
        ws.send_text("ping")
        assert ws.receive_json() == {"type": "pong"}


def test_deleting_strain_unlinks_its_plants(client):
    strain = client.post("/api/strains", json={
        "name": f"Gone Haze {uuid4().hex[:6]}",
        "flowering_time_min": 63,
        "flowering_time_max": 70,
    })
    assert strain.status_code == 200, strain.text
    strain_id = strain.json()["id"]
    plant = create_plant(client, strain_id=strain_id)
    assert plant["strain_id"] == strain_id

    deleted = client.delete(f"/api/strains/{strain_id}")
    assert deleted.status_code == 200

    reloaded = client.get(f"/api/plants/{plant['id']}").json()
    assert reloaded["strain_id"] is None
    assert reloaded["strain"] == plant["strain"]
