from conftest import SIMULATION_DATA, auth_header


async def test_admin_creates_simulation(client, users):
    resp = await client.post("/api/simulations", json=SIMULATION_DATA, headers=auth_header("USR_ADMIN"))
    assert resp.status_code == 201
    simulation = resp.json()["data"]["simulation"]
    assert simulation["simulation_id"].startswith("SIM_")
    assert simulation["metrics"]["enrollments"] == 0
    assert simulation["created_by"] == "USR_ADMIN"


async def test_non_admin_cannot_create(client, users):
    resp = await client.post("/api/simulations", json=SIMULATION_DATA, headers=auth_header("USR_ONE"))
    assert resp.status_code == 403


async def test_create_validation(client, users):
    bad = dict(SIMULATION_DATA, category="cooking")
    resp = await client.post("/api/simulations", json=bad, headers=auth_header("USR_ADMIN"))
    assert resp.status_code == 422

    bad = dict(SIMULATION_DATA, duration=0)
    resp = await client.post("/api/simulations", json=bad, headers=auth_header("USR_ADMIN"))
    assert resp.status_code == 422


async def test_list_and_filter(client, db, users, simulation):
    from blixora.simulations.database import create_simulation

    await create_simulation(db, dict(SIMULATION_DATA, title="Kubernetes Drills", description="Roll out a cluster", category="devops", tags=[]), "USR_ADMIN")

    resp = await client.get("/api/simulations")
    assert resp.status_code == 200
    assert resp.json()["data"]["pagination"]["total_items"] == 2

    resp = await client.get("/api/simulations?category=devops")
    sims = resp.json()["data"]["simulations"]
    assert [s["title"] for s in sims] == ["Kubernetes Drills"]

    resp = await client.get("/api/simulations?search=breach")
    sims = resp.json()["data"]["simulations"]
    assert [s["simulation_id"] for s in sims] == [simulation["simulation_id"]]


async def test_metrics_not_editable(client, db, users, simulation):
    url = f"/api/simulations/{simulation['simulation_id']}"
    resp = await client.put(
        url,
        json={"title": "Incident Response II", "metrics": {"enrollments": 999}},
        headers=auth_header("USR_ADMIN")
    )
    assert resp.status_code == 200
    updated = resp.json()["data"]["simulation"]
    assert updated["title"] == "Incident Response II"
    assert updated["metrics"]["enrollments"] == 0


async def test_soft_delete_hides_simulation(client, db, users, simulation):
    url = f"/api/simulations/{simulation['simulation_id']}"
    resp = await client.delete(url, headers=auth_header("USR_ADMIN"))
    assert resp.status_code == 200

    assert (await client.get(url)).status_code == 404
    stored = await db.simulations.find_one({"simulation_id": simulation["simulation_id"]})
    assert stored["is_active"] is False


async def test_stats_require_enrollment(client, users, simulation):
    url = f"/api/simulations/{simulation['simulation_id']}/stats"

    assert (await client.get(url, headers=auth_header("USR_ONE"))).status_code == 403

    await client.post(
        "/api/enrollments",
        json={"simulation_id": simulation["simulation_id"]},
        headers=auth_header("USR_ONE")
    )
    resp = await client.get(url, headers=auth_header("USR_ONE"))
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["stats"]["enrollments"] == 1
    assert data["completion_rate"] == 0.0

    assert (await client.get(url, headers=auth_header("USR_ADMIN"))).status_code == 200


async def test_health(client):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["services"]["api"] == "UP"
    assert body["services"]["database"] in ("UP", "DOWN")
