from database import operations
from services import ledger


HEADER = "id,name,category,size,color,quantity,condition,location,notes"


def _add(client, **fields):
    payload = {"name": "Red Cape", "quantity": 5}
    payload.update(fields)
    # None means "leave it to the server default"
    payload = {key: value for key, value in payload.items() if value is not None}
    response = client.post("/inventory", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def _borrow(client, item_id, qty, **fields):
    payload = {
        "inventory_id": item_id,
        "borrower_name": "Ana Reyes",
        "department": "Drama Club",
        "qty": qty,
        "due_date": "2999-12-31",
        "staff": "Mr. Cruz",
    }
    payload.update(fields)
    return client.post("/borrow", json=payload)


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "Welcome to Costume Logistics API"}


class TestInventoryRoutes:
    def test_add_uses_defaults(self, client):
        item = _add(client, name="Angel Wings", quantity=None)
        assert item["category"] == "Accessory"
        assert item["size"] == "Free"
        assert item["condition"] == "Good"
        assert item["location"] == "Storage"
        assert item["quantity"] == 1
        assert item["available"] == 1

    def test_negative_quantity_rejected(self, client):
        response = client.post("/inventory", json={"name": "Mask", "quantity": -1})
        assert response.status_code == 422

    def test_oversized_quantity_rejected(self, client, store):
        response = client.post("/inventory", json={"name": "Mask", "quantity": 10**30})
        assert response.status_code == 422
        assert store.inventory.docs == {}

        item = _add(client)
        response = client.patch(f"/inventory/{item['id']}", json={"quantity": 2**63})
        assert response.status_code == 422

    def test_duplicate_id(self, client):
        _add(client, id="c_fixed")
        response = client.post("/inventory", json={"id": "c_fixed", "name": "Other"})
        assert response.status_code == 409

    def test_search(self, client):
        _add(client, name="Red Cape")
        _add(client, name="Knight Helmet", category="Headwear", location="Cabinet 1")

        names = [i["name"] for i in client.get("/inventory", params={"q": "headWEAR"}).json()]
        assert names == ["Knight Helmet"]
        assert len(client.get("/inventory").json()) == 2
        assert len(client.get("/inventory", params={"limit": 1}).json()) == 1

    def test_get_and_update(self, client):
        item = _add(client)
        response = client.patch(f"/inventory/{item['id']}", json={"color": "Crimson"})
        assert response.status_code == 200
        assert response.json()["color"] == "Crimson"
        assert client.get(f"/inventory/{item['id']}").json()["color"] == "Crimson"

    def test_unknown_item(self, client):
        assert client.get("/inventory/c_missing").status_code == 404
        assert client.patch("/inventory/c_missing", json={"name": "x"}).status_code == 404
        assert client.delete("/inventory/c_missing").status_code == 404

    def test_quantity_below_borrowed(self, client):
        item = _add(client, quantity=5)
        _borrow(client, item["id"], 4)
        response = client.patch(f"/inventory/{item['id']}", json={"quantity": 3})
        assert response.status_code == 409

    def test_edit_racing_a_loan(self, client, monkeypatch):
        item = _add(client, quantity=5)
        real_update = operations.update_inventory_item

        async def loan_then_update(item_id, update_data, version=None):
            await ledger.create_loan({
                "inventory_id": item_id, "borrower_name": "Ana Reyes", "qty": 4, "purpose": "Event",
            })
            return await real_update(item_id, update_data, version=version)

        monkeypatch.setattr(operations, "update_inventory_item", loan_then_update)

        response = client.patch(f"/inventory/{item['id']}", json={"quantity": 3})
        assert response.status_code == 409
        assert "please retry" in response.json()["detail"]

    def test_delete_blocked_until_returned(self, client):
        item = _add(client)
        record = _borrow(client, item["id"], 1).json()

        assert client.delete(f"/inventory/{item['id']}").status_code == 409

        client.post(f"/borrow/{record['id']}/return", json={})
        assert client.delete(f"/inventory/{item['id']}").status_code == 204
        assert client.get(f"/inventory/{item['id']}").status_code == 404

    def test_store_failure_is_reported(self, client, store):
        store.inventory.fail_on.add("insert_one")
        response = client.post("/inventory", json={"name": "Mask"})
        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to add inventory item"


class TestCsvRoutes:
    def test_export(self, client):
        _add(client, id="c_cape", notes='Gold "trim"')
        response = client.get("/inventory/export")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="inventory_export.csv"' in response.headers["content-disposition"]
        lines = response.text.splitlines()
        assert lines[0] == HEADER
        assert lines[1] == '"c_cape","Red Cape","Accessory","Free","",5,"Good","Storage","Gold ""trim"""'

    def test_import(self, client):
        text = HEADER + "\nc_1,Wizard Hat,Headwear,Free,Navy,6,Good,Rack A,\n,Mask,,,,oops,,,\n"
        response = client.post(
            "/inventory/import",
            files={"file": ("costumes.csv", text.encode("utf-8"), "text/csv")},
        )
        assert response.status_code == 200
        summary = response.json()
        assert summary["imported"] == 2
        assert summary["failed"] == 0
        assert summary["created_ids"][0] == "c_1"

        items = {i["name"]: i for i in client.get("/inventory").json()}
        assert items["Wizard Hat"]["available"] == 6
        assert items["Mask"]["quantity"] == 0

    def test_import_empty(self, client):
        response = client.post(
            "/inventory/import",
            files={"file": ("empty.csv", HEADER.encode("utf-8"), "text/csv")},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "No data found"

    def test_import_rejects_other_files(self, client):
        response = client.post(
            "/inventory/import",
            files={"file": ("costumes.txt", b"a,b\n1,2\n", "text/plain")},
        )
        assert response.status_code == 400


class TestBorrowRoutes:
    def test_not_enough_available(self, client, store):
        item = _add(client, quantity=5)
        response = _borrow(client, item["id"], 6)
        assert response.status_code == 409
        assert response.json()["detail"] == "Not enough available. 5 left."
        assert store.borrow_log.docs == {}

    def test_borrow_then_availability(self, client):
        item = _add(client, quantity=5)
        record = _borrow(client, item["id"], 3)
        assert record.status_code == 201
        assert record.json()["status"] == "Borrowed"
        assert record.json()["costume_name"] == "Red Cape"

        assert client.get(f"/inventory/{item['id']}").json()["available"] == 2
        assert _borrow(client, item["id"], 3).status_code == 409
        assert _borrow(client, item["id"], 2).status_code == 201

    def test_validation(self, client):
        item = _add(client)
        assert _borrow(client, item["id"], 1, borrower_name="   ").status_code == 422
        assert _borrow(client, item["id"], 0).status_code == 422
        assert _borrow(client, item["id"], 1, due_date="next week").status_code == 422

    def test_unknown_item(self, client):
        assert _borrow(client, "c_missing", 1).status_code == 404

    def test_active_and_overdue(self, client):
        item = _add(client, quantity=5)
        late = _borrow(client, item["id"], 1, due_date="2024-01-01").json()
        _borrow(client, item["id"], 1)

        active = client.get("/borrow").json()
        assert len(active) == 2
        assert {r["id"]: r["overdue"] for r in active}[late["id"]] is True

        overdue = client.get("/borrow", params={"overdue_only": True}).json()
        assert [r["id"] for r in overdue] == [late["id"]]

    def test_return(self, client):
        item = _add(client)
        record = _borrow(client, item["id"], 2, due_date="2024-01-01").json()

        response = client.post(f"/borrow/{record['id']}/return", json={
            "condition_on_return": "Needs Repair",
            "missing_items": 1,
            "repair_cost": 250,
            "checked_by": "Mrs. Lim",
        })
        assert response.status_code == 200
        closed = response.json()
        assert closed["status"] == "Returned"
        assert closed["date_returned"] is not None
        assert closed["missing_items"] == 1
        assert closed["overdue"] is False

        assert client.get("/borrow").json() == []
        assert client.get(f"/inventory/{item['id']}").json()["available"] == 5

    def test_return_form_validation(self, client):
        item = _add(client)
        record = _borrow(client, item["id"], 1).json()
        url = f"/borrow/{record['id']}/return"

        assert client.post(url, json={"condition_on_return": "Lost"}).status_code == 422
        assert client.post(url, json={"missing_items": -1}).status_code == 422
        assert client.post(url, json={"repair_cost": -5}).status_code == 422
        assert client.post(url, json={"checked_by": ""}).status_code == 422

    def test_return_unknown_record(self, client):
        assert client.post("/borrow/b_missing/return", json={}).status_code == 404


class TestReturnsRoutes:
    def test_history(self, client):
        item = _add(client)
        first = _borrow(client, item["id"], 1).json()
        second = _borrow(client, item["id"], 1).json()
        client.post(f"/borrow/{first['id']}/return", json={"checked_by": "Mr. Reyes"})

        history = client.get("/returns").json()
        assert [r["id"] for r in history] == [second["id"], first["id"]]
        assert history[1]["status"] == "Returned"
        assert history[1]["checked_by"] == "Mr. Reyes"
        assert history[1]["condition_on_return"] == "Good"

        assert client.get(f"/returns/{second['id']}").json()["status"] == "Borrowed"
        assert client.get("/returns/b_missing").status_code == 404

    def test_record_store_failure(self, client, store):
        store.borrow_log.fail_on.add("find_one")
        response = client.get("/returns/b_any")
        assert response.status_code == 500
        assert response.json()["detail"].startswith("Error getting borrow record")
