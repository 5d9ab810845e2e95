import unittest
from datetime import date
from decimal import Decimal

from fintrack.budget_math import (
    apply_expense_to_budget,
    calculate_budgets_summary,
    calculate_progress,
    calculate_remaining,
    create_recurring_budget,
    find_budgets_needing_renewal,
    get_alert_status,
    get_budget_progress_color,
    get_budget_status,
    get_first_and_last_day_of_month,
    get_next_month_range,
    get_triggered_alerts,
    is_budget_exceeded,
    sync_budget_spending,
    validate_budget_data,
)
from fintrack.records import Budget, Expense


def make_budget(**overrides) -> Budget:
    fields = {
        "name": "Groceries",
        "category": "Food",
        "amount": Decimal("1000"),
        "start_date": date(2024, 5, 1),
        "end_date": date(2024, 5, 31),
    }
    fields.update(overrides)
    return Budget(**fields)


class BudgetArithmeticTests(unittest.TestCase):
    def test_remaining_is_clamped_at_zero(self) -> None:
        self.assertEqual(calculate_remaining(100, 150), Decimal("0"))
        self.assertEqual(calculate_remaining(100, 40, 25), Decimal("85"))

    def test_progress_of_empty_budget_is_zero(self) -> None:
        self.assertEqual(calculate_progress(0, 500), Decimal("0"))

    def test_progress_is_not_capped(self) -> None:
        self.assertEqual(calculate_progress(200, 300), Decimal("150"))

    def test_exceeded_only_when_spent_is_greater(self) -> None:
        self.assertFalse(is_budget_exceeded(100, 100))
        self.assertTrue(is_budget_exceeded(100, Decimal("100.01")))

    def test_month_ranges(self) -> None:
        self.assertEqual(
            get_first_and_last_day_of_month(date(2024, 2, 14)),
            (date(2024, 2, 1), date(2024, 2, 29)),
        )
        self.assertEqual(
            get_next_month_range(date(2024, 12, 31)),
            (date(2025, 1, 1), date(2025, 1, 31)),
        )


class BudgetStatusTests(unittest.TestCase):
    def test_progress_color_bands(self) -> None:
        self.assertEqual(get_budget_progress_color(10), "green")
        self.assertEqual(get_budget_progress_color(50), "orange")
        self.assertEqual(get_budget_progress_color(75), "red")
        self.assertEqual(get_budget_progress_color(10, is_over_budget=True), "red")

    def test_status_labels(self) -> None:
        self.assertEqual(get_budget_status(20), "Under Budget")
        self.assertEqual(get_budget_status(80), "On Track")
        self.assertEqual(get_budget_status(95), "Near Limit")
        self.assertEqual(get_budget_status(120, is_over_budget=True), "Over Budget")

    def test_crossing_fifty_triggers_only_that_alert(self) -> None:
        alerts = get_triggered_alerts(40, 60, {"alert50": True, "alert75": True, "alert100": True})

        self.assertEqual([alert.percentage for alert in alerts], [50])
        self.assertEqual(alerts[0].message, "50% of budget used")

    def test_jump_past_several_thresholds_fires_each_enabled_one(self) -> None:
        alerts = get_triggered_alerts(10, 100, make_budget(alert75=False))

        self.assertEqual([alert.percentage for alert in alerts], [50, 100])

    def test_staying_above_threshold_is_silent(self) -> None:
        self.assertEqual(get_triggered_alerts(60, 70, make_budget()), [])

    def test_alert_status_reports_most_severe(self) -> None:
        self.assertEqual(get_alert_status(make_budget(spent=Decimal("800")))[0].type, "75")
        self.assertEqual(get_alert_status(make_budget(spent=Decimal("1200")))[0].type, "exceeded")
        self.assertEqual(get_alert_status(make_budget(spent=Decimal("100"))), [])


class BudgetCollectionTests(unittest.TestCase):
    def test_summary_of_no_budgets_is_zero(self) -> None:
        summary = calculate_budgets_summary([])

        self.assertEqual(summary.total_budget, Decimal("0"))
        self.assertEqual(summary.total_spent, Decimal("0"))
        self.assertEqual(summary.total_remaining, Decimal("0"))
        self.assertEqual(summary.categories_count, 0)
        self.assertEqual(summary.over_budget_count, 0)
        self.assertEqual(summary.average_progress, Decimal("0"))

    def test_summary_totals(self) -> None:
        budgets = [
            make_budget(spent=Decimal("250")),
            make_budget(category="Travel", amount=Decimal("300"), spent=Decimal("450")),
        ]

        summary = calculate_budgets_summary(budgets)

        self.assertEqual(summary.total_budget, Decimal("1300"))
        self.assertEqual(summary.total_spent, Decimal("700"))
        self.assertEqual(summary.total_remaining, Decimal("750"))
        self.assertEqual(summary.categories_count, 2)
        self.assertEqual(summary.over_budget_count, 1)
        self.assertEqual(summary.average_progress, Decimal("87.50"))

    def test_recurring_budget_rolls_over_remaining(self) -> None:
        previous = make_budget(
            spent=Decimal("600"), is_recurring=True, rollover_enabled=True
        )

        renewed = create_recurring_budget(previous)

        self.assertEqual(renewed.start_date, date(2024, 6, 1))
        self.assertEqual(renewed.end_date, date(2024, 6, 30))
        self.assertEqual(renewed.spent, Decimal("0"))
        self.assertEqual(renewed.rollover_amount, Decimal("400"))

    def test_recurring_budget_without_rollover(self) -> None:
        renewed = create_recurring_budget(make_budget(spent=Decimal("100"), is_recurring=True))

        self.assertEqual(renewed.rollover_amount, Decimal("0"))

    def test_find_budgets_needing_renewal(self) -> None:
        expired = make_budget(is_recurring=True)
        one_off = make_budget(name="Trip")
        current = make_budget(
            is_recurring=True, start_date=date(2024, 6, 1), end_date=date(2024, 6, 30)
        )

        due = find_budgets_needing_renewal([expired, one_off, current], today=date(2024, 6, 5))

        self.assertEqual(due, [expired])

    def test_sync_matches_category_aliases_within_period(self) -> None:
        expenses = [
            Expense(amount=Decimal("120"), date=date(2024, 5, 3), category="Food & Dining"),
            Expense(amount=Decimal("30"), date=date(2024, 5, 9), category="food"),
            Expense(amount=Decimal("99"), date=date(2024, 6, 1), category="Food"),
            Expense(amount=Decimal("45"), date=date(2024, 5, 9), category="Travel"),
        ]

        synced = sync_budget_spending([make_budget(spent=Decimal("999"))], expenses)

        self.assertEqual(synced[0].spent, Decimal("150"))


class BudgetValidationTests(unittest.TestCase):
    def test_valid_budget(self) -> None:
        result = validate_budget_data(
            {
                "name": "Rent",
                "category": "bills",
                "amount": "1500",
                "startDate": "2024-05-01",
                "endDate": "2024-05-31",
            }
        )

        self.assertTrue(result.is_valid)
        self.assertEqual(result.errors, ())

    def test_reports_every_problem(self) -> None:
        result = validate_budget_data(
            {
                "name": " ",
                "amount": 0,
                "start_date": "2024-05-31",
                "end_date": "2024-05-01",
            }
        )

        self.assertFalse(result.is_valid)
        self.assertEqual(
            {issue.field for issue in result.errors}, {"name", "category", "amount", "end_date"}
        )
        self.assertEqual(result.messages_for("end_date"), ["End date must be after start date"])

    def test_non_finite_amount_is_an_error_not_an_exception(self) -> None:
        for raw in ("NaN", "Infinity", "-inf", {"value": 5}):
            result = validate_budget_data(
                {
                    "name": "Rent",
                    "category": "bills",
                    "amount": raw,
                    "start_date": "2024-05-01",
                    "end_date": "2024-05-31",
                }
            )

            self.assertFalse(result.is_valid)
            self.assertEqual(result.messages_for("amount"), ["Budget amount must be positive"])


class ApplyExpenseTests(unittest.TestCase):
    def test_adds_amount_and_reports_crossed_threshold(self) -> None:
        budget = make_budget(spent=Decimal("400"))
        expense = Expense(amount=Decimal("200"), date=date(2024, 5, 10), category="food")

        updated, alerts = apply_expense_to_budget(budget, expense)

        self.assertEqual(updated.spent, Decimal("600"))
        self.assertEqual([alert.percentage for alert in alerts], [50])
        self.assertEqual(budget.spent, Decimal("400"))

    def test_overspending_measures_alerts_on_capped_progress(self) -> None:
        budget = make_budget(spent=Decimal("900"))
        expense = Expense(amount=Decimal("300"), date=date(2024, 5, 10), category="Food & Dining")

        updated, alerts = apply_expense_to_budget(budget, expense)

        self.assertEqual(updated.spent, Decimal("1200"))
        self.assertEqual([alert.percentage for alert in alerts], [100])

    def test_disabled_threshold_stays_silent(self) -> None:
        budget = make_budget(spent=Decimal("400"), alert50=False)
        expense = Expense(amount=Decimal("200"), date=date(2024, 5, 10), category="Food")

        self.assertEqual(apply_expense_to_budget(budget, expense)[1], [])

    def test_rejects_other_category(self) -> None:
        expense = Expense(amount=Decimal("20"), date=date(2024, 5, 10), category="Travel")

        with self.assertRaises(ValueError):
            apply_expense_to_budget(make_budget(), expense)

    def test_rejects_expense_outside_period(self) -> None:
        expense = Expense(amount=Decimal("20"), date=date(2024, 6, 1), category="Food")

        with self.assertRaises(ValueError):
            apply_expense_to_budget(make_budget(), expense)

    def test_rejects_zero_amount(self) -> None:
        expense = Expense(amount=Decimal("0"), date=date(2024, 5, 10), category="Food")

        with self.assertRaises(ValueError):
            apply_expense_to_budget(make_budget(), expense)


if __name__ == "__main__":
    unittest.main()
