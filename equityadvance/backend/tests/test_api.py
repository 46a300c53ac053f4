# tests/test_api.py
from equity_api.adapters.clients.base import PropertyLookupError, ProviderNotConfigured

from conftest import ENCODED_VALUE, TRACKING_DOMAIN, make_property

ADDRESS = "123 Oak Ave, Phoenix, AZ 85001"


async def _active_manager(api_client, email="iso@example.com", tracking=True) -> str:
    r = await api_client.post("/profiles", json={"email": email, "full_name": "Iso Partner"})
    assert r.status_code == 201
    pid = r.json()["id"]
    changes = {"status": "active"}
    if tracking:
        changes.update(tracking_domain=TRACKING_DOMAIN, encoded_value=ENCODED_VALUE)
    r = await api_client.patch(f"/profiles/{pid}", json=changes)
    assert r.status_code == 200
    return pid


async def test_health(api_client):
    r = await api_client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


async def test_reference_and_calculators(api_client):
    ref = (await api_client.get("/underwriting/reference")).json()
    states = {s["code"]: s["eligible"] for s in ref["states"]}
    assert len(states) == 51
    assert states["AZ"] is True and states["TX"] is False
    assert "Land" in ref["ineligible_property_types"]
    assert ref["limits"]["min_funding"] == 15000

    r = await api_client.post("/underwriting/max-investment", json={"home_value": 500000, "mortgage_balance": 200000})
    body = r.json()
    assert body["max_investment"] == 150000
    assert body["max_investment_display"] == "$150,000"
    assert body["is_eligible"] is True

    r = await api_client.post(
        "/underwriting/validate",
        json={"state": "TX", "property_type": "Land", "ownership_type": "Personal", "home_value": 400000},
    )
    assert r.json()["is_valid"] is False
    assert len(r.json()["errors"]) == 2

    r = await api_client.post(
        "/underwriting/settlement",
        json={"home_value": 500000, "funding_amount": 100000, "settlement_year": 1, "hpa_rate": 0.06},
    )
    assert r.status_code == 200
    assert r.json()["is_capped"] is True
    assert abs(r.json()["payoff"] - 119900) < 0.01

    r = await api_client.post("/underwriting/settlement", json={"home_value": 500000, "funding_amount": 1, "settlement_year": 11})
    assert r.status_code == 422


async def test_prequalify_and_lookup(api_client, fake_provider):
    r = await api_client.post("/underwriting/prequalify", json={"address": ADDRESS})
    assert r.status_code == 200
    assert r.json()["is_eligible"] is True
    assert r.json()["cached"] is False

    r = await api_client.post("/properties/lookup", json={"address": ADDRESS})
    assert r.status_code == 200
    assert r.json()["cached"] is True
    assert r.json()["ownership_type"] == "Personal"


async def test_lookup_error_statuses(api_client, fake_provider):
    fake_provider.results["1 A St, X, AZ"] = PropertyLookupError("Property lookup failed: 404", 404)
    fake_provider.results["2 B St, X, AZ"] = PropertyLookupError("Property lookup failed: 500", 500)
    fake_provider.results["3 C St, X, AZ"] = ProviderNotConfigured("ATTOM API key not configured")
    fake_provider.results["4 D St X AZ"] = ValueError("Address format invalid")

    codes = []
    for addr in fake_provider.results:
        codes.append((await api_client.post("/properties/lookup", json={"address": addr})).status_code)
    assert codes == [404, 502, 503, 400]


async def test_profile_lifecycle_and_team(api_client):
    mid = await _active_manager(api_client)
    manager = (await api_client.get(f"/profiles/{mid}")).json()
    assert manager["role"] == "manager"
    assert manager["tracking_configured"] is True

    r = await api_client.post(
        "/profiles", json={"email": "off@example.com", "invite_token": manager["invite_token"]}
    )
    assert r.json()["role"] == "officer"
    assert r.json()["parent_id"] == mid

    team = (await api_client.get(f"/profiles/{mid}/team")).json()
    assert [m["email"] for m in team] == ["off@example.com"]

    assert (await api_client.get("/profiles/nope")).status_code == 404
    assert (await api_client.patch(f"/profiles/{mid}", json={})).status_code == 400
    assert (await api_client.post("/profiles", json={"email": "iso@example.com"})).status_code == 400


async def test_list_profiles_by_status(api_client):
    mid = await _active_manager(api_client)
    r = await api_client.post("/profiles", json={"email": "waiting@example.com"})
    waiting_id = r.json()["id"]

    pending = (await api_client.get("/profiles", params={"status": "pending"})).json()
    assert [p["id"] for p in pending] == [waiting_id]

    everyone = (await api_client.get("/profiles")).json()
    assert {p["id"] for p in everyone} == {mid, waiting_id}

    assert (await api_client.get("/profiles", params={"status": "archived"})).status_code == 422


async def test_deal_flow(api_client, fake_provider):
    r = await api_client.post("/profiles", json={"email": "new@example.com"})
    pending_id = r.json()["id"]
    r = await api_client.post("/deals", json={"profile_id": pending_id, "address": ADDRESS})
    assert r.status_code == 403

    mid = await _active_manager(api_client)
    r = await api_client.post("/deals", json={"profile_id": mid, "address": ADDRESS})
    assert r.status_code == 201
    deal = r.json()
    assert deal["stage"] == "Offer Generated"
    assert deal["offer_link"] == f"https://{TRACKING_DOMAIN}/{ENCODED_VALUE}/2CTPL/?sub5={deal['id']}"

    r = await api_client.post("/deals", json={"profile_id": mid, "address": ADDRESS, "mortgage_balance": 470000})
    assert r.status_code == 422
    assert r.json()["detail"]["reasons"] == ["LTV (94.0%) too high or equity too low"]

    r = await api_client.patch(f"/deals/{deal['id']}/stage", json={"stage": "Application Qualified"})
    assert r.json()["stage"] == "Application Qualified"
    assert (await api_client.patch(f"/deals/{deal['id']}/stage", json={"stage": "nope"})).status_code == 400
    assert (await api_client.get("/deals/missing")).status_code == 404

    pipe = (await api_client.get("/pipeline", params={"profile_id": mid})).json()
    assert pipe["total"] == 1
    assert len(pipe["columns"]) == 11
    qualified = next(c for c in pipe["columns"] if c["stage"] == "Application Qualified")
    assert qualified["count"] == 1


async def test_missing_tracking_is_a_conflict(api_client):
    mid = await _active_manager(api_client, tracking=False)
    r = await api_client.post("/campaigns", json={"profile_id": mid, "name": "X", "platform": "email"})
    assert r.status_code == 409


async def test_campaigns(api_client):
    platforms = (await api_client.get("/campaigns/platforms")).json()
    assert [p["id"] for p in platforms][:2] == ["tiktok", "facebook"]
    assert len(platforms) == 8

    mid = await _active_manager(api_client)
    r = await api_client.post(
        "/campaigns", json={"profile_id": mid, "name": "Spring", "platform": "twitter", "description": "x"}
    )
    assert r.status_code == 201
    c = r.json()
    assert c["platform_name"] == "X/Twitter"
    assert c["offer_link"].endswith(f"?sub4={c['id']}")
    assert c["funnel"]["total_clicks"] == 0

    listed = (await api_client.get("/campaigns", params={"profile_id": mid})).json()
    assert [x["id"] for x in listed] == [c["id"]]

    r = await api_client.patch(f"/campaigns/{c['id']}", json={"is_active": False})
    assert r.json()["is_active"] is False

    bad = await api_client.post("/campaigns", json={"profile_id": mid, "name": "Y", "platform": "myspace"})
    assert bad.status_code == 400


async def test_bulk_import_runs_in_background(api_client, fake_provider):
    fake_provider.results["9 Elm Rd, Austin, TX 78701"] = make_property(state="TX")
    mid = await _active_manager(api_client)

    r = await api_client.post(
        "/bulk-imports",
        json={"profile_id": mid, "text": f"{ADDRESS}\n\n9 Elm Rd, Austin, TX 78701\n"},
    )
    assert r.status_code == 202
    submitted = r.json()
    assert submitted["total"] == 2
    assert [i["status"] for i in submitted["items"]] == ["pending", "pending"]

    done = (await api_client.get(f"/bulk-imports/{submitted['id']}")).json()
    assert done["status"] == "completed"
    assert (done["success"], done["failed"]) == (1, 1)
    assert done["items"][0]["message"] == "Max Funding: $150,000"

    assert (await api_client.post("/bulk-imports", json={"profile_id": mid, "addresses": []})).status_code == 400
    assert (await api_client.get("/bulk-imports/unknown")).status_code == 404
