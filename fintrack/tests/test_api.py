import unittest

from fastapi.testclient import TestClient

from fintrack.main import app


class ApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.client = TestClient(app)

    def test_health(self) -> None:
        response = self.client.get("/health")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")

    def test_budget_summary(self) -> None:
        response = self.client.post(
            "/budgets/summary",
            json={
                "budgets": [
                    {
                        "name": "Groceries",
                        "category": "Food",
                        "amount": 1000,
                        "spent": 800,
                        "start_date": "2024-05-01",
                        "end_date": "2024-05-31",
                    }
                ]
            },
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(float(body["summary"]["total_remaining"]), 200.0)
        self.assertEqual(body["budgets"][0]["status"], "On Track")
        self.assertEqual(body["budgets"][0]["alerts"][0]["type"], "75")

    def test_budget_validation(self) -> None:
        response = self.client.post("/budgets/validate", json={"name": "Rent", "amount": -1})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertFalse(body["is_valid"])
        self.assertIn("amount", [error["field"] for error in body["errors"]])

    def test_budget_alerts(self) -> None:
        response = self.client.post(
            "/budgets/alerts", json={"previous_percentage": 40, "current_percentage": 60}
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual([alert["percentage"] for alert in response.json()], [50])

    def test_budget_sync(self) -> None:
        response = self.client.post(
            "/budgets/sync",
            json={
                "budgets": [
                    {
                        "name": "Commute",
                        "category": "Transportation",
                        "amount": 500,
                        "start_date": "2024-05-01",
                        "end_date": "2024-05-31",
                    }
                ],
                "expenses": [
                    {"amount": 120, "date": "2024-05-04", "category": "transport"},
                    {"amount": 80, "date": "2024-04-30", "category": "transport"},
                ],
            },
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(float(response.json()[0]["spent"]), 120.0)

    def test_portfolio(self) -> None:
        response = self.client.post(
            "/investments/portfolio",
            json={
                "investments": [
                    {"invested_amount": 1000, "current_value": 1200, "type": "stocks", "name": "Acme"}
                ]
            },
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(float(body["summary"]["pnl_percent"]), 20.0)
        self.assertEqual(body["allocation"][0]["type"], "stocks")
        self.assertEqual(body["investments"][0]["pnl"], "₹200")

    def test_invalid_investment_type_is_rejected(self) -> None:
        response = self.client.post(
            "/investments/portfolio",
            json={"investments": [{"invested_amount": 1, "current_value": 1, "type": "tulips"}]},
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Invalid investment type: tulips")

    def test_budget_renewals(self) -> None:
        response = self.client.post(
            "/budgets/renewals",
            json={
                "budgets": [
                    {
                        "name": "Groceries",
                        "category": "Food",
                        "amount": 1000,
                        "spent": 700,
                        "start_date": "2024-05-01",
                        "end_date": "2024-05-31",
                        "is_recurring": True,
                        "rollover_enabled": True,
                    }
                ],
                "today": "2024-06-02",
            },
        )

        self.assertEqual(response.status_code, 200)
        renewed = response.json()[0]
        self.assertEqual(renewed["start_date"], "2024-06-01")
        self.assertEqual(float(renewed["rollover_amount"]), 300.0)
        self.assertEqual(float(renewed["remaining"]), 1300.0)

    def test_investment_query(self) -> None:
        response = self.client.post(
            "/investments/query",
            json={
                "investments": [
                    {"invested_amount": 100, "current_value": 90, "type": "crypto", "name": "Coin"},
                    {"invested_amount": 100, "current_value": 150, "type": "stocks", "name": "Acme"},
                    {"invested_amount": 100, "current_value": 120, "type": "stocks", "name": "Beta"},
                ],
                "type": "stocks",
                "sort_by": "pnl",
                "order": "asc",
            },
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual([row["name"] for row in response.json()], ["Beta", "Acme"])

    def test_sip_metrics(self) -> None:
        response = self.client.post(
            "/investments/sip-metrics",
            json={
                "transactions": [
                    {"amount": 1000, "units": 100, "nav": 10, "date": "2024-01-05"},
                    {"amount": 1000, "units": 50, "nav": 20, "date": "2024-02-05"},
                ],
                "current_value": 2400,
            },
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(float(body["metrics"]["pnl_percent"]), 20.0)
        self.assertEqual(body["history"]["first_transaction"], "2024-01-05")

    def test_expense_analytics(self) -> None:
        response = self.client.post(
            "/analytics/expenses",
            json={
                "expenses": [
                    {"amount": 400, "date": "2024-05-09", "category": "Food"},
                    {"amount": 200, "date": "2024-05-10", "category": "Travel", "need_or_want": "want"},
                ],
                "days": 3,
                "today": "2024-05-10",
            },
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(len(body["daily_trend"]), 3)
        self.assertEqual(float(body["category_distribution"][0]["percentage"]), 66.7)
        self.assertEqual([row["type"] for row in body["need_want"]], ["Need", "Want"])

    def test_dashboard_without_data(self) -> None:
        response = self.client.post("/dashboard/overview", json={"today": "2024-05-10"})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["health"]["score"], 0)
        self.assertFalse(body["health"]["has_health_data"])
        self.assertEqual(len(body["need_want"]), 3)
        self.assertEqual(len(body["monthly_trend"]), 6)

    def test_report_rejects_unknown_range(self) -> None:
        response = self.client.post("/reports/summary", json={"date_range": "nextDecade"})

        self.assertEqual(response.status_code, 400)

    def test_income_summary(self) -> None:
        response = self.client.post(
            "/income/summary",
            json={
                "incomes": [{"amount": 5000, "date": "2024-05-01", "category": "Employment"}],
                "today": "2024-05-10",
            },
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["category_breakdown"]["Employment"]["count"], 1)
        self.assertIsNone(body["next_expected_income"])

    def test_debts_summary(self) -> None:
        response = self.client.post(
            "/debts/summary",
            json={
                "debts": [
                    {"original_amount": 20000, "current_balance": 12000, "minimum_payment": 1000}
                ],
                "today": "2024-05-20",
            },
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["debts"][0]["progress_percentage"], 40)
        self.assertEqual(body["debts"][0]["expected_payoff_date"], "2025-05-20")

    def test_budget_validation_reports_non_finite_amount(self) -> None:
        response = self.client.post(
            "/budgets/validate",
            json={
                "name": "Rent",
                "category": "bills",
                "amount": "NaN",
                "start_date": "2024-05-01",
                "end_date": "2024-05-31",
            },
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertFalse(body["is_valid"])
        self.assertEqual([error["field"] for error in body["errors"]], ["amount"])

    def test_budget_with_unknown_priority_is_rejected(self) -> None:
        response = self.client.post(
            "/budgets/summary",
            json={
                "budgets": [
                    {
                        "name": "Groceries",
                        "category": "Food",
                        "amount": 1000,
                        "start_date": "2024-05-01",
                        "end_date": "2024-05-31",
                        "priority": "urgent",
                    }
                ]
            },
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Invalid budget priority: urgent")

    def test_apply_expense_to_budget(self) -> None:
        response = self.client.post(
            "/budgets/apply-expense",
            json={
                "budget": {
                    "name": "Groceries",
                    "category": "Food",
                    "amount": 1000,
                    "spent": 400,
                    "start_date": "2024-05-01",
                    "end_date": "2024-05-31",
                },
                "expense": {"amount": 200, "date": "2024-05-10", "category": "Food & Dining"},
            },
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(float(body["budget"]["spent"]), 600.0)
        self.assertEqual([alert["percentage"] for alert in body["alerts"]], [50])

    def test_apply_expense_from_other_category_is_rejected(self) -> None:
        response = self.client.post(
            "/budgets/apply-expense",
            json={
                "budget": {
                    "name": "Groceries",
                    "category": "Food",
                    "amount": 1000,
                    "start_date": "2024-05-01",
                    "end_date": "2024-05-31",
                },
                "expense": {"amount": 200, "date": "2024-05-10", "category": "Travel"},
            },
        )

        self.assertEqual(response.status_code, 400)

    def test_debt_payment(self) -> None:
        response = self.client.post(
            "/debts/payment",
            json={
                "debt": {
                    "original_amount": 20000,
                    "current_balance": 12000,
                    "minimum_payment": 1000,
                },
                "amount": 2000,
                "today": "2024-05-20",
            },
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(float(body["current_balance"]), 10000.0)
        self.assertEqual(body["status"], "active")
        self.assertEqual(body["progress_percentage"], 50)
        self.assertEqual(body["expected_payoff_date"], "2025-03-20")

    def test_debt_overpayment_closes_debt(self) -> None:
        response = self.client.post(
            "/debts/payment",
            json={"debt": {"original_amount": 500, "current_balance": 100}, "amount": 250},
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(float(body["current_balance"]), 0.0)
        self.assertEqual(body["status"], "closed")
        self.assertIsNone(body["expected_payoff_date"])

    def test_payment_on_closed_debt_is_rejected(self) -> None:
        response = self.client.post(
            "/debts/payment",
            json={
                "debt": {"original_amount": 500, "current_balance": 0, "status": "closed"},
                "amount": 50,
            },
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Cannot add payment to inactive debt")

    def test_sip_transaction_derives_units(self) -> None:
        response = self.client.post(
            "/investments/sip-transactions",
            json={
                "investment": {
                    "invested_amount": 1000,
                    "current_value": 1500,
                    "type": "mutual-fund",
                    "is_sip": True,
                    "sip_transactions": [{"amount": 1000, "nav": 50, "date": "2024-01-05"}],
                },
                "amount": 1000,
                "nav": 40,
                "today": "2024-02-05",
            },
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(float(body["investment"]["invested_amount"]), 2000.0)
        self.assertEqual(body["investment"]["sip_transactions"][1]["date"], "2024-02-05")
        self.assertEqual(body["metrics"]["total_transactions"], 2)
        self.assertEqual(float(body["metrics"]["total_units"]), 45.0)

    def test_sip_transaction_on_lump_sum_investment_is_rejected(self) -> None:
        response = self.client.post(
            "/investments/sip-transactions",
            json={
                "investment": {"invested_amount": 1000, "current_value": 1500, "type": "stocks"},
                "amount": 1000,
                "nav": 40,
            },
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "This is not a SIP investment")

    def test_profile_completion(self) -> None:
        response = self.client.post(
            "/profile/completion", json={"name": "Asha", "email": "asha@example.com"}
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["percentage"], 25)
        self.assertTrue(body["basic_info"])


if __name__ == "__main__":
    unittest.main()
