"""Tests for the HTTP API."""

import inspect

from api import ocr


def create_transaction(client, **overrides) -> dict:
    payload = {
        "description": "Groceries",
        "amount": 42.5,
        "type": "EXPENSE",
        "category": "Food",
        "date": "2024-03-15",
        "tags": ["weekly"],
    }
    payload.update(overrides)
    response = client.post("/api/transactions/", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestHealth:
    def test_health(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert "X-Process-Time" in response.headers


class TestTransactionsAPI:
    def test_create_uses_camel_case_keys(self, test_client):
        created = create_transaction(test_client)

        assert created["id"].startswith("txn_")
        assert created["userId"] == "default_clarityLedger_user"
        assert created["amount"] == 42.5

    def test_list_filters_and_sorts_newest_first(self, test_client):
        create_transaction(test_client, date="2024-03-01")
        create_transaction(test_client, date="2024-03-20")
        create_transaction(test_client, date="2024-04-02", category="Transport")
        create_transaction(test_client, date="2024-03-10", type="INCOME", category="Salary")

        march = test_client.get("/api/transactions/", params={"month_year": "2024-03", "type": "EXPENSE"}).json()
        transport = test_client.get("/api/transactions/", params={"category": "Transport"}).json()

        assert [t["date"] for t in march] == ["2024-03-20", "2024-03-01"]
        assert [t["date"] for t in transport] == ["2024-04-02"]

    def test_invalid_transaction_rejected(self, test_client):
        response = test_client.post(
            "/api/transactions/",
            json={"description": " ", "amount": 0, "type": "EXPENSE", "category": "Food", "date": "2024-03-15"},
        )

        assert response.status_code == 422

    def test_delete(self, test_client):
        created = create_transaction(test_client)

        assert test_client.delete(f"/api/transactions/{created['id']}").status_code == 204
        assert test_client.delete(f"/api/transactions/{created['id']}").status_code == 404
        assert test_client.get("/api/transactions/").json() == []


class TestBudgetsAPI:
    def test_month_details_include_rollover(self, test_client):
        for month, target in (("2024-02", 200), ("2024-03", 300)):
            response = test_client.post(
                "/api/budgets/",
                json={"category": "Food", "targetAmount": target, "monthYear": month, "allowRollover": True},
            )
            assert response.status_code == 201
        create_transaction(test_client, date="2024-02-10", amount=120)
        create_transaction(test_client, date="2024-03-05", amount=50)

        [details] = test_client.get("/api/budgets/month/2024-03").json()

        assert details["spentAmount"] == 50
        assert details["rolloverAmount"] == 80
        assert details["effectiveTargetAmount"] == 380

    def test_invalid_month_rejected(self, test_client):
        assert test_client.get("/api/budgets/month/March").status_code == 422

    def test_update_and_delete(self, test_client):
        created = test_client.post(
            "/api/budgets/", json={"category": "Food", "targetAmount": 100, "monthYear": "2024-03"}
        ).json()

        updated = test_client.put(
            f"/api/budgets/{created['id']}", json={"category": "Food", "targetAmount": 150, "monthYear": "2024-03"}
        )

        assert updated.status_code == 200
        assert updated.json()["targetAmount"] == 150
        assert test_client.put("/api/budgets/missing", json=created).status_code == 404
        assert test_client.delete(f"/api/budgets/{created['id']}").status_code == 204
        assert test_client.delete(f"/api/budgets/{created['id']}").status_code == 404


class TestRecurringAPI:
    template = {
        "description": "Gym",
        "amount": 30,
        "type": "EXPENSE",
        "category": "Health",
        "frequency": "weekly",
        "startDate": "2024-03-01",
    }

    def test_create_and_process(self, test_client):
        created = test_client.post("/api/recurring/", json=self.template).json()
        assert created["nextDueDate"] == "2024-03-01"
        assert created["isActive"] is True

        result = test_client.post("/api/recurring/process", json={"today": "2024-03-15"}).json()

        assert result == {"created_count": 3, "errors": []}
        [template] = test_client.get("/api/recurring/").json()
        assert template["nextDueDate"] == "2024-03-22"
        assert template["lastGeneratedDate"] == "2024-03-15"
        assert len(test_client.get("/api/transactions/").json()) == 3

    def test_toggle_update_and_delete(self, test_client):
        created = test_client.post("/api/recurring/", json=self.template).json()

        paused = test_client.patch(f"/api/recurring/{created['id']}/active", json={"is_active": False}).json()
        updated = test_client.put(f"/api/recurring/{created['id']}", json={**self.template, "amount": 35}).json()

        assert paused["isActive"] is False
        assert updated["amount"] == 35
        assert updated["isActive"] is False
        assert test_client.delete(f"/api/recurring/{created['id']}").status_code == 204
        assert test_client.patch("/api/recurring/missing/active", json={"is_active": True}).status_code == 404
        assert test_client.put("/api/recurring/missing", json=self.template).status_code == 404

    def test_unknown_frequency_rejected(self, test_client):
        response = test_client.post("/api/recurring/", json={**self.template, "frequency": "fortnightly"})

        assert response.status_code == 422


class TestOCRAPI:
    def test_text(self, test_client):
        response = test_client.post(
            "/api/ocr/text", json={"text": "Total: $48.60\nMar 15, 2024\nStarbucks", "today": "2024-06-01"}
        )

        assert response.status_code == 200
        assert response.json()["amount"] == 48.6
        assert response.json()["date"] == "2024-03-15"
        assert response.json()["suggested_category"] == "Food"

    def test_image(self, test_client):
        response = test_client.post("/api/ocr/image", files={"file": ("receipt.png", b"\x89PNG", "image/png")})

        assert response.status_code == 200
        assert response.json()["amount"] == 12.5
        assert response.json()["date"] == "2024-03-15"

    def test_image_rejects_other_files(self, test_client):
        response = test_client.post("/api/ocr/image", files={"file": ("notes.txt", b"hello", "text/plain")})

        assert response.status_code == 400

    def test_ai_without_key_reports_error(self, test_client):
        response = test_client.post("/api/ocr/ai", json={"text": "Total: $5.00"})

        assert response.status_code == 200
        assert response.json()["error"] == "OpenRouter API Key is not set."

    def test_ai_rejects_invalid_base64(self, test_client):
        response = test_client.post("/api/ocr/ai", json={"text": "", "image_base64": "not base64!"})

        assert response.status_code == 400

    def test_blocking_routes_are_sync(self):
        assert not inspect.iscoroutinefunction(ocr.recognize_image)
        assert not inspect.iscoroutinefunction(ocr.extract_with_ai)


class TestExportAPI:
    def test_csv_export_and_import(self, test_client):
        create_transaction(test_client, description='Dinner, "with friends"')
        exported = test_client.get("/api/export/csv")

        assert exported.status_code == 200
        assert exported.headers["content-type"].startswith("text/csv")
        assert "clarityLedger_transactions_" in exported.headers["content-disposition"]
        assert '"Dinner, ""with friends"""' in exported.text

        response = test_client.post(
            "/api/export/csv/import", files={"file": ("transactions.csv", exported.content, "text/csv")}
        )

        assert response.json() == {"imported": 0, "duplicates": 1, "errors": []}

    def test_csv_import_rejects_other_files(self, test_client):
        response = test_client.post("/api/export/csv/import", files={"file": ("data.json", b"{}", "application/json")})

        assert response.status_code == 400

    def test_backup_round_trip(self, test_client):
        create_transaction(test_client)
        backup = test_client.get("/api/export/backup")
        document = backup.json()

        test_client.delete(f"/api/transactions/{document['transactions'][0]['id']}")
        response = test_client.post("/api/export/backup", json=document)

        assert backup.headers["content-disposition"].startswith("attachment;")
        assert document["version"] == "1.0.2"
        assert response.status_code == 200
        assert response.json() == {"success": True, "violations": []}
        assert len(test_client.get("/api/transactions/").json()) == 1

    def test_invalid_backup_rejected(self, test_client):
        document = test_client.get("/api/export/backup").json()
        document["transactions"] = [{"description": "Bad", "amount": -1}]

        response = test_client.post("/api/export/backup", json=document)

        assert response.status_code == 400
        assert any(v["path"] == "transactions.0.amount" for v in response.json()["detail"])


class TestReportsAPI:
    def test_reports(self, test_client):
        create_transaction(test_client, date="2024-02-10", amount=100)
        create_transaction(test_client, date="2024-02-11", amount=1000, type="INCOME", category="Salary")

        summary = test_client.get("/api/reports/summary").json()
        cash_flow = test_client.get(
            "/api/reports/cash-flow", params={"start_date": "2024-02-01", "end_date": "2024-02-29"}
        ).json()
        monthly = test_client.get(
            "/api/reports/monthly-spending", params={"start_date": "2024-01-01", "end_date": "2024-02-29"}
        ).json()

        assert summary == {"income": 1000, "expenses": 100, "balance": 900}
        assert cash_flow["net_cash_flow"] == 900
        assert monthly["months"][1] == {"month": "2024-02", "spending": {"Food": 100}}
        assert len(test_client.get("/api/reports/trend", params={"months": 3}).json()) == 3

    def test_reversed_range_rejected(self, test_client):
        response = test_client.get(
            "/api/reports/cash-flow", params={"start_date": "2024-03-01", "end_date": "2024-02-01"}
        )

        assert response.status_code == 400

    def test_tip_without_key_reports_error(self, test_client):
        response = test_client.get("/api/reports/tip")

        assert response.status_code == 200
        assert response.json() == {
            "tip": None,
            "error": "API Key for OpenRouter is not set. Please configure it in settings.",
        }


class TestSettingsAPI:
    def test_update_settings(self, test_client):
        current = test_client.get("/api/settings/").json()
        current.update({"language": "zh-TW", "darkMode": True})

        updated = test_client.put("/api/settings/", json=current)

        assert updated.status_code == 200
        assert test_client.get("/api/settings/").json()["language"] == "zh-TW"
        assert test_client.get("/api/settings/").json()["darkMode"] is True
