async def _setup_room(client, base_price="100.00"):
    resp = await client.post("/api/room-types", json={"name": "Standard", "base_price": base_price})
    assert resp.status_code == 201
    room = resp.json()
    resp = await client.post(
        "/api/rate-plans",
        json={"code": "BAR", "name": "Best Available Rate", "is_default": True},
    )
    assert resp.status_code == 201
    return room


async def test_health(client):
    resp = await client.get("/api/health")
    assert resp.json() == {"status": "ok", "service": "ratebook"}


async def test_quote_end_to_end(client):
    room = await _setup_room(client)
    resp = await client.post(
        "/api/seasonal-rates",
        json={
            "name": "High summer",
            "start_date": "2026-07-01",
            "end_date": "2026-07-31",
            "modifier_type": "percentage",
            "modifier_value": "25",
            "priority": 1,
        },
    )
    assert resp.status_code == 201
    resp = await client.post("/api/taxes", json={"name": "VAT", "rate": "15", "applies_to": "all"})
    assert resp.status_code == 201

    resp = await client.post(
        "/api/pricing/quote",
        json={"room_type_id": room["id"], "check_in": "2026-07-04", "check_out": "2026-07-05"},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["room_subtotal"] == "125.00"
    assert body["tax_total"] == "18.75"
    assert body["grand_total"] == "143.75"
    assert body["nightly_rates"][0]["night"] == "2026-07-04"


async def test_resolve_preview(client):
    room = await _setup_room(client)
    resp = await client.post(
        "/api/dynamic-pricing/event-overrides",
        json={
            "name": "Grand Prix",
            "start_date": "2026-07-04",
            "end_date": "2026-07-05",
            "modifier_type": "absolute",
            "modifier_value": "450",
        },
    )
    assert resp.status_code == 201

    resp = await client.post("/api/pricing/resolve", json={"room_type_id": room["id"], "night": "2026-07-04"})

    body = resp.json()
    assert [m["category"] for m in body["modifiers"]] == ["event_override", "rate_plan"]
    assert body["rate"] == "450.00"
    assert body["short_circuited_by"] == body["modifiers"][0]["rule_id"]


async def test_malformed_rule_rejected_at_write_time(client):
    resp = await client.post(
        "/api/seasonal-rates",
        json={
            "name": "Backwards",
            "start_date": "2026-08-01",
            "end_date": "2026-07-01",
            "modifier_value": "10",
        },
    )
    assert resp.status_code == 422

    resp = await client.post(
        "/api/dynamic-pricing/dow-rules",
        json={"day_of_week": 7, "modifier_value": "10"},
    )
    assert resp.status_code == 422


async def test_quote_errors_are_structured(client):
    room = await _setup_room(client)
    resp = await client.post(
        "/api/pricing/quote",
        json={"room_type_id": room["id"], "check_in": "2026-07-04", "check_out": "2026-07-04"},
    )
    assert resp.status_code == 422
    assert resp.json()["error"] == "pricing_error"

    resp = await client.post(
        "/api/pricing/quote",
        json={"room_type_id": 999, "check_in": "2026-07-04", "check_out": "2026-07-05"},
    )
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


async def test_promo_validate_and_redeem(client):
    resp = await client.post(
        "/api/promotions",
        json={
            "code": "summer2026",
            "name": "Summer",
            "discount_type": "percentage",
            "discount_value": "20",
            "max_discount": "10.00",
            "max_uses": 1,
        },
    )
    assert resp.status_code == 201
    assert resp.json()["code"] == "SUMMER2026"

    resp = await client.post("/api/promotions/validate", json={"code": "SUMMER2026", "amount": "100.00"})
    assert resp.status_code == 200
    assert resp.json()["discount"] == "10.00"
    assert resp.json()["final"] == "90.00"

    resp = await client.post("/api/promotions/redeem", json={"code": "SUMMER2026", "amount": "100.00", "guest_id": 1})
    assert resp.status_code == 200

    resp = await client.post("/api/promotions/redeem", json={"code": "SUMMER2026", "amount": "100.00", "guest_id": 2})
    assert resp.status_code == 422
    body = resp.json()
    assert body["error"] == "promo_error"
    assert body["reason"] == "USAGE_LIMIT"
    assert body["detail"] == "This promo code has reached its maximum usage limit."


async def test_loyalty_flow(client):
    resp = await client.post("/api/loyalty/tiers", json={"name": "Bronze", "min_points": 0})
    assert resp.status_code == 201
    resp = await client.post(
        "/api/loyalty/rewards", json={"name": "Free night", "points_cost": 600, "reward_type": "free_night"}
    )
    reward = resp.json()

    resp = await client.post("/api/loyalty/members", json={"guest_id": 42})
    assert resp.status_code == 201
    member = resp.json()
    assert member["tier_name"] == "Bronze"

    resp = await client.post(f"/api/loyalty/members/{member['id']}/adjust", json={"points": 500, "description": "Welcome"})
    assert resp.status_code == 201

    resp = await client.post(f"/api/loyalty/members/{member['id']}/redeem", json={"reward_id": reward["id"]})
    assert resp.status_code == 409
    assert resp.json()["error"] == "insufficient_points"
    assert resp.json()["balance"] == 500

    resp = await client.get(f"/api/loyalty/members/{member['id']}")
    assert resp.json()["points_balance"] == 500


async def test_folio_lifecycle(client):
    await client.post("/api/taxes", json={"name": "VAT", "rate": "15", "applies_to": "all"})
    resp = await client.post("/api/folios", json={"guest_id": 5, "booking_id": 900})
    assert resp.status_code == 201
    folio = resp.json()

    resp = await client.post(
        f"/api/folios/{folio['id']}/room-charges",
        json={"nights": 2, "rate": "125.00", "room_type_name": "Deluxe"},
    )
    assert resp.status_code == 201
    assert resp.json()["total"] == "287.50"

    resp = await client.post(f"/api/folios/{folio['id']}/close")
    assert resp.json()["status"] == "closed"

    resp = await client.post(
        f"/api/folios/{folio['id']}/items",
        json={"category": "extra", "description": "Minibar", "quantity": 1, "unit_price": "12.00"},
    )
    assert resp.status_code == 409
    assert resp.json()["error"] == "folio_state"


async def test_currency_convert(client):
    await client.post("/api/currencies", json={"code": "usd", "name": "US Dollar", "symbol": "$", "exchange_rate": "1"})
    await client.post(
        "/api/currencies",
        json={"code": "JPY", "name": "Japanese Yen", "symbol": "¥", "exchange_rate": "151.50", "decimal_places": 0},
    )

    resp = await client.post("/api/currencies/convert", json={"amount": "10.01", "from_currency": "USD", "to_currency": "JPY"})
    assert resp.status_code == 200
    assert resp.json()["converted"] == "1517"
    assert resp.json()["formatted"] == "¥1,517"

    resp = await client.post("/api/currencies/convert", json={"amount": "1", "from_currency": "USD", "to_currency": "XYZ"})
    assert resp.status_code == 422
    assert resp.json()["error"] == "unknown_currency"


async def test_parity(client):
    resp = await client.post(
        "/api/pricing/parity",
        json={"our_rate": "200", "their_rate": "180", "threshold_percent": 5, "channel": "ota"},
    )
    assert resp.json()["status"] == "undercut"
    assert resp.json()["pct_difference"] == "-10.00"


async def test_rate_restrictions_block_quotes(client):
    room = await _setup_room(client)
    resp = await client.post(
        "/api/rate-restrictions",
        json={
            "room_type_id": room["id"],
            "restriction_type": "min_stay",
            "value": 2,
            "date_from": "2026-07-01",
            "date_to": "2026-07-31",
            "days_of_week": [6, 6, 5],
        },
    )
    assert resp.status_code == 201
    restriction = resp.json()
    assert restriction["days_of_week"] == [5, 6]

    resp = await client.post(
        "/api/pricing/quote",
        json={"room_type_id": room["id"], "check_in": "2026-07-04", "check_out": "2026-07-05"},
    )
    assert resp.status_code == 422
    body = resp.json()
    assert body["error"] == "pricing_error"
    assert body["reason"] == "min_stay"
    assert body["restriction_id"] == restriction["id"]

    resp = await client.put(f"/api/rate-restrictions/{restriction['id']}", json={"status": "inactive"})
    assert resp.status_code == 200
    resp = await client.post(
        "/api/pricing/quote",
        json={"room_type_id": room["id"], "check_in": "2026-07-04", "check_out": "2026-07-05"},
    )
    assert resp.status_code == 200

    resp = await client.get("/api/rate-restrictions", params={"room_type_id": room["id"]})
    assert [r["id"] for r in resp.json()] == [restriction["id"]]
    resp = await client.delete(f"/api/rate-restrictions/{restriction['id']}")
    assert resp.status_code == 204
    resp = await client.get(f"/api/rate-restrictions/{restriction['id']}")
    assert resp.status_code == 404


async def test_malformed_restrictions_rejected(client):
    room = await _setup_room(client)
    base = {"room_type_id": room["id"], "date_from": "2026-07-01", "date_to": "2026-07-31"}

    resp = await client.post("/api/rate-restrictions", json={**base, "restriction_type": "min_stay"})
    assert resp.status_code == 422
    resp = await client.post("/api/rate-restrictions", json={**base, "restriction_type": "cta", "value": 3})
    assert resp.status_code == 422
    resp = await client.post("/api/rate-restrictions", json={**base, "restriction_type": "blackout"})
    assert resp.status_code == 422
    resp = await client.post("/api/rate-restrictions", json={**base, "room_type_id": 999, "restriction_type": "cta"})
    assert resp.status_code == 422
    assert resp.json()["error"] == "validation_error"


async def test_quote_with_extra_guests(client):
    resp = await client.post(
        "/api/room-types",
        json={
            "name": "Family",
            "base_price": "100.00",
            "base_occupancy": 2,
            "max_occupancy": 5,
            "extra_adult_price": "20.00",
            "extra_child_price": "5.00",
        },
    )
    room = resp.json()
    await client.post("/api/rate-plans", json={"code": "BAR", "name": "Best Available Rate", "is_default": True})

    resp = await client.post(
        "/api/pricing/quote",
        json={"room_type_id": room["id"], "check_in": "2026-07-04", "check_out": "2026-07-06", "adults": 3, "children": 2},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["extra_person_fee"] == "60.00"
    assert body["grand_total"] == "260.00"

    resp = await client.post(
        "/api/pricing/quote",
        json={"room_type_id": room["id"], "check_in": "2026-07-04", "check_out": "2026-07-06", "adults": 4, "children": 2},
    )
    assert resp.status_code == 422


async def test_moving_default_currency_keeps_conversions(client):
    await client.post("/api/currencies", json={"code": "USD", "name": "US Dollar", "symbol": "$", "exchange_rate": "1"})
    await client.post("/api/currencies", json={"code": "SAR", "name": "Saudi Riyal", "symbol": "SAR ", "exchange_rate": "3.75"})

    resp = await client.post("/api/currencies/SAR/default")
    assert resp.status_code == 200
    assert resp.json()["is_default"] is True
    assert float(resp.json()["exchange_rate"]) == 1.0

    resp = await client.post("/api/currencies/convert", json={"amount": "100", "from_currency": "SAR", "to_currency": "USD"})
    assert resp.json()["converted"] == "26.67"

    resp = await client.post("/api/currencies/SAR/rate", json={"rate": "1"})
    assert resp.status_code == 422
