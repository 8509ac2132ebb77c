import uuid

API = "/api/v1"


async def create_product(client, sku, unit_price=10, minimum_stock=0):
    resp = await client.post(
        f"{API}/products",
        json={"sku": sku, "name": f"Product {sku}", "unit_price": unit_price, "minimum_stock": minimum_stock},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


async def create_location(client, bin_, capacity=100):
    resp = await client.post(
        f"{API}/locations",
        json={"zone": "A", "aisle": "01", "rack": "01", "bin": bin_, "capacity": capacity},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


async def receive(client, product_id, location_id, quantity, lot_number=None):
    resp = await client.post(
        f"{API}/inventory",
        json={
            "product_id": product_id,
            "location_id": location_id,
            "quantity": quantity,
            "lot_number": lot_number,
        },
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


async def test_health(client):
    resp = await client.get(f"{API}/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert resp.headers["X-Correlation-ID"]


async def test_not_found_uses_error_envelope(client):
    resp = await client.get(f"{API}/products/{uuid.uuid4()}", headers={"X-Correlation-ID": "corr-1"})
    assert resp.status_code == 404
    body = resp.json()
    assert body["error"]["type"] == "not_found"
    assert body["correlation_id"] == "corr-1"
    assert body["method"] == "GET"


async def test_request_validation_uses_error_envelope(client):
    resp = await client.post(f"{API}/products", json={"sku": "", "name": "x"})
    assert resp.status_code == 422
    assert resp.json()["error"]["type"] == "validation_error"


async def test_duplicate_sku_conflicts(client):
    await create_product(client, "DUP-1")
    resp = await client.post(f"{API}/products", json={"sku": "DUP-1", "name": "Again"})
    assert resp.status_code == 409
    assert resp.json()["error"]["type"] == "conflict"


async def test_receive_and_allocate_stock(client):
    product = await create_product(client, "FIFO-1", minimum_stock=5)
    loc = await create_location(client, "10")
    await receive(client, product["id"], loc["id"], 6, "L1")
    await receive(client, product["id"], loc["id"], 4, "L2")

    resp = await client.post(
        f"{API}/inventory/allocations",
        json={"product_id": product["id"], "quantity": 7, "request_token": "api-pick-1"},
    )
    assert resp.status_code == 201, resp.text
    assert [line["quantity"] for line in resp.json()["lines"]] == [6, 1]

    stock = (await client.get(f"{API}/products/{product['id']}/stock")).json()
    assert stock == {"product_id": product["id"], "available": 3, "minimum_stock": 5, "low_stock": True}

    resp = await client.post(f"{API}/inventory/allocations", json={"product_id": product["id"], "quantity": 50})
    assert resp.status_code == 409
    body = resp.json()
    assert body["error"]["type"] == "insufficient_stock"
    assert body["error"]["details"]["available"] == 3


async def test_order_allocation_tokens_are_reserved(client):
    product = await create_product(client, "FIFO-2")
    loc = await create_location(client, "13")
    await receive(client, product["id"], loc["id"], 5)

    resp = await client.post(
        f"{API}/inventory/allocations",
        json={"product_id": product["id"], "quantity": 1, "request_token": f"order:{uuid.uuid4()}:{product['id']}"},
    )
    assert resp.status_code == 422
    assert resp.json()["error"]["type"] == "validation_error"

    stock = (await client.get(f"{API}/products/{product['id']}/stock")).json()
    assert stock["available"] == 5


async def test_capacity_is_enforced_on_receipt(client):
    product = await create_product(client, "CAP-1")
    loc = await create_location(client, "11", capacity=100)
    await receive(client, product["id"], loc["id"], 80, "L1")

    check = await client.post(
        f"{API}/locations/capacity-check",
        json={"assignments": [{"location_id": loc["id"], "quantity": 30}]},
    )
    assert check.status_code == 200
    assert check.json()["ok"] is False

    resp = await client.post(
        f"{API}/inventory",
        json={"product_id": product["id"], "location_id": loc["id"], "quantity": 30, "lot_number": "L2"},
    )
    assert resp.status_code == 409
    assert resp.json()["error"]["type"] == "capacity_exceeded"

    loc_view = (await client.get(f"{API}/locations/{loc['id']}")).json()
    assert loc_view["current_usage"] == 80
    assert loc_view["available_capacity"] == 20


async def test_outbound_order_flow(client):
    product = await create_product(client, "OUT-1", unit_price=25)
    loc = await create_location(client, "12")
    await receive(client, product["id"], loc["id"], 10)
    customer = (
        await client.post(f"{API}/customers", json={"name": "Globex", "credit_limit": 100})
    ).json()

    resp = await client.post(
        f"{API}/orders",
        json={
            "order_type": "outbound",
            "customer_id": customer["id"],
            "items": [{"product_id": product["id"], "quantity": 5}],
        },
    )
    assert resp.status_code == 409
    assert resp.json()["error"]["type"] == "credit_limit_exceeded"

    resp = await client.post(
        f"{API}/orders",
        json={
            "order_type": "outbound",
            "customer_id": customer["id"],
            "items": [{"product_id": product["id"], "quantity": 4}],
        },
    )
    assert resp.status_code == 201, resp.text
    order = resp.json()
    assert order["total_amount"] == 100
    assert order["credit"]["status"] == "near_limit"

    allocations = (await client.get(f"{API}/orders/{order['id']}/allocations")).json()
    assert [(a["quantity"], a["order_id"]) for a in allocations] == [(4, order["id"])]

    resp = await client.patch(
        f"{API}/orders/{order['id']}/shipping-status", json={"status": "in_transit", "location": "Dock 3"}
    )
    assert resp.status_code == 200
    assert [t["status"] for t in resp.json()["tracking_history"]] == ["in_transit"]

    resp = await client.patch(f"{API}/orders/{order['id']}/status", json={"status": "completed"})
    assert resp.status_code == 409
    assert resp.json()["error"]["type"] == "invalid_transition"

    refreshed = (await client.get(f"{API}/customers/{customer['id']}")).json()
    assert refreshed["current_balance"] == 100


async def test_credit_limit_cannot_drop_below_balance(client):
    product = await create_product(client, "CRED-1", unit_price=10)
    loc = await create_location(client, "13")
    await receive(client, product["id"], loc["id"], 10)
    customer = (await client.post(f"{API}/customers", json={"name": "Initech", "credit_limit": 500})).json()
    await client.post(
        f"{API}/orders",
        json={
            "order_type": "outbound",
            "customer_id": customer["id"],
            "items": [{"product_id": product["id"], "quantity": 5}],
        },
    )

    resp = await client.put(f"{API}/customers/{customer['id']}/credit-limit", json={"credit_limit": 40})
    assert resp.status_code == 422
    assert resp.json()["error"]["message"] == "Credit limit cannot be less than current balance"

    resp = await client.post(f"{API}/customers/{customer['id']}/credit-check", json={"total": 360})
    assert resp.json()["status"] == "near_limit"


async def test_inventory_report_csv(client):
    product = await create_product(client, "REP-1", unit_price=3)
    loc = await create_location(client, "14")
    await receive(client, product["id"], loc["id"], 4)

    resp = await client.get(f"{API}/reports/inventory-valuation", params={"format": "csv"})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    lines = resp.text.strip().splitlines()
    assert lines[0].startswith("sku,product,category,location")
    assert "REP-1" in lines[1]
    assert "A-01-01-14" in lines[1]


async def test_dashboard_endpoint(client):
    await create_product(client, "DASH-1", minimum_stock=1)
    resp = await client.get(f"{API}/dashboard/metrics")
    assert resp.status_code == 200
    body = resp.json()
    assert body["total_products"] == 1
    assert body["low_stock_items"] == 1


def test_openapi_schema_is_written(tmp_path):
    from wms.api.generate_openapi import write_openapi

    path = write_openapi(str(tmp_path))
    with open(path) as f:
        schema = f.read()
    assert '"/api/v1/orders"' in schema
    assert '"/api/v1/inventory/allocations"' in schema
    assert '"/api/v1/pick-lists"' in schema


async def test_unknown_route_uses_error_envelope(client):
    resp = await client.get(f"{API}/nowhere")
    assert resp.status_code == 404
    assert resp.json()["error"]["type"] == "http_error"


async def test_low_stock_report_formats(client):
    await create_product(client, "LOW-1", minimum_stock=10)

    xlsx = await client.get(f"{API}/reports/low-stock", params={"format": "xlsx"})
    assert xlsx.status_code == 200
    assert xlsx.content[:2] == b"PK"

    pdf = await client.get(f"{API}/reports/low-stock", params={"format": "pdf"})
    assert pdf.status_code == 200
    assert pdf.content.startswith(b"%PDF")

    bad = await client.get(f"{API}/reports/low-stock", params={"format": "docx"})
    assert bad.status_code == 422


async def test_pick_list_flow(client):
    product = await create_product(client, "PICK-1", unit_price=2)
    loc = await create_location(client, "20")
    await receive(client, product["id"], loc["id"], 10)
    customer = (await client.post(f"{API}/customers", json={"name": "Initech", "credit_limit": 500})).json()
    order = (
        await client.post(
            f"{API}/orders",
            json={
                "order_type": "outbound",
                "customer_id": customer["id"],
                "items": [{"product_id": product["id"], "quantity": 3}],
            },
        )
    ).json()

    resp = await client.post(f"{API}/pick-lists", json={"order_id": order["id"]})
    assert resp.status_code == 201, resp.text
    pick_list = resp.json()
    assert pick_list["status"] == "pending"
    assert [(i["location_id"], i["quantity"]) for i in pick_list["items"]] == [(loc["id"], 3)]

    again = await client.post(f"{API}/pick-lists", json={"order_id": order["id"]})
    assert again.status_code == 409

    item_id = pick_list["items"][0]["id"]
    resp = await client.patch(
        f"{API}/pick-lists/{pick_list['id']}/items/{item_id}", json={"quantity_picked": 4}
    )
    assert resp.status_code == 422
    resp = await client.patch(
        f"{API}/pick-lists/{pick_list['id']}/items/{item_id}", json={"quantity_picked": 3}
    )
    assert resp.json()["items"][0]["status"] == "picked"

    resp = await client.patch(f"{API}/pick-lists/{pick_list['id']}/status", json={"status": "completed"})
    assert resp.status_code == 200
    assert resp.json()["completed_at"] is not None

    listed = (await client.get(f"{API}/pick-lists", params={"search": order["order_number"]})).json()
    assert [p["id"] for p in listed] == [pick_list["id"]]


async def test_customer_pricing_endpoints(client):
    product = await create_product(client, "PRICE-1", unit_price=50)
    customer = (await client.post(f"{API}/customers", json={"name": "Hooli", "credit_limit": 1000})).json()

    resp = await client.post(
        f"{API}/customers/{customer['id']}/pricing",
        json={"product_id": product["id"], "discount_percentage": 10, "valid_from": "2000-01-01"},
    )
    assert resp.status_code == 201, resp.text
    rule = resp.json()

    price = (await client.get(f"{API}/customers/{customer['id']}/prices/{product['id']}")).json()
    assert price["unit_price"] == 45
    assert price["rule_id"] == rule["id"]

    bad = await client.post(
        f"{API}/customers/{customer['id']}/pricing",
        json={"product_id": product["id"], "valid_from": "2000-01-01"},
    )
    assert bad.status_code == 422

    resp = await client.delete(f"{API}/customers/{customer['id']}/pricing/{rule['id']}")
    assert resp.status_code == 204
    assert (await client.get(f"{API}/customers/{customer['id']}/pricing")).json() == []


async def test_communication_log_crud(client):
    customer = (await client.post(f"{API}/customers", json={"name": "Umbrella"})).json()
    base = f"{API}/customers/{customer['id']}/communications"

    resp = await client.post(
        base,
        json={
            "channel": "phone",
            "subject": "Delivery window",
            "content": "Prefers mornings",
            "contact_date": "2024-05-01",
            "follow_up_date": "2024-05-08",
        },
    )
    assert resp.status_code == 201, resp.text
    log = resp.json()
    assert log["status"] == "pending"

    resp = await client.patch(f"{base}/{log['id']}", json={"status": "completed"})
    assert resp.json()["status"] == "completed"
    assert resp.json()["follow_up_date"] == "2024-05-08"

    resp = await client.patch(f"{base}/{log['id']}", json={"follow_up_date": "2024-04-01"})
    assert resp.status_code == 422

    assert [x["id"] for x in (await client.get(base, params={"status": "completed"})).json()] == [log["id"]]
    assert (await client.delete(f"{base}/{log['id']}")).status_code == 204
    assert (await client.get(base)).json() == []
