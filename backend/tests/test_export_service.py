import csv
import io
import pathlib
import sys
import unittest
from datetime import date, datetime, timezone
from decimal import Decimal
from unittest import mock

BACKEND_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from finexport.models.export import Account, Category, DateRange, ExportFormat, ExportRequest, Transaction
from finexport.services.export import (
    ExportError,
    NoDataError,
    RenderFailureError,
    UnsupportedFormatError,
    execute,
    export_filename,
    preview,
)

ACCOUNTS = [
    Account(id="acc-1", name="Main", type="checking", balance="1500.00"),
    Account(id="acc-2", name="Rainy Day", type="savings", balance="300.00"),
]
CATEGORIES = [
    Category(id="cat-food", name="Food", color="#F97316", icon="utensils"),
    Category(id="cat-pay", name="Salary", color="#22C55E", icon="briefcase"),
]
TRANSACTIONS = [
    Transaction(
        id="t1",
        amount=Decimal("42.10"),
        description="Market, weekly",
        type="expense",
        date=datetime(2024, 1, 5, 18, 0, tzinfo=timezone.utc),
        account_id="acc-1",
        category_id="cat-food",
    ),
    Transaction(
        id="t2",
        amount=Decimal("2500.00"),
        description="January salary",
        type="income",
        date=datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc),
        account_id="acc-deleted",
        category_id="cat-pay",
    ),
    Transaction(
        id="t3",
        amount=Decimal("15.00"),
        description="Bakery",
        type="expense",
        date=datetime(2024, 2, 1, 8, 0, tzinfo=timezone.utc),
        account_id="acc-2",
        category_id="cat-food",
    ),
]
JANUARY = DateRange(from_date=date(2024, 1, 1), to_date=date(2024, 1, 31))


def run(export_format: str, date_range: DateRange = JANUARY, transactions=TRANSACTIONS):
    request = ExportRequest(format=export_format, range=date_range)
    return execute(request, transactions, ACCOUNTS, CATEGORIES)


class ExportOrchestratorTests(unittest.TestCase):
    def test_tabular_export_contains_filtered_rows_only(self):
        document = run("tabular")
        rows = list(csv.reader(io.StringIO(document.content.decode("utf-8"), newline="")))

        self.assertEqual(document.media_type, "text/csv; charset=utf-8")
        self.assertEqual(document.filename, "transactions_2024-01-01_to_2024-01-31.csv")
        self.assertEqual(document.row_count, 2)
        self.assertEqual(len(rows), 3)
        self.assertEqual(rows[1], ["2024-01-05", "Market, weekly", "Food", "Main", "Expense", "-42.10"])

    def test_tabular_export_keeps_descriptions_verbatim(self):
        padded = Transaction.model_validate(
            {
                "_id": "t9",
                "amount": "3.00",
                "description": "  padded  ",
                "type": "expense",
                "date": "2024-01-09T12:00:00Z",
                "accountId": "acc-1",
                "categoryId": "cat-food",
            }
        )
        document = run("csv", transactions=[padded])
        rows = list(csv.reader(io.StringIO(document.content.decode("utf-8"), newline="")))

        self.assertEqual(rows[1][1], "  padded  ")

    def test_deleted_account_shows_unknown_and_export_succeeds(self):
        document = run("csv")
        rows = list(csv.reader(io.StringIO(document.content.decode("utf-8"), newline="")))

        self.assertEqual(rows[2][3], "Unknown")
        self.assertEqual(rows[2][5], "2500.00")

    def test_report_export(self):
        document = run("pdf")

        self.assertEqual(document.media_type, "application/pdf")
        self.assertEqual(document.filename, "transactions_2024-01-01_to_2024-01-31.pdf")
        self.assertTrue(document.content.startswith(b"%PDF-"))

    def test_execute_twice_is_byte_identical(self):
        for export_format in ("tabular", "report"):
            self.assertEqual(run(export_format).content, run(export_format).content)

    def test_empty_transaction_set_is_no_data(self):
        all_time = DateRange(from_date=date(1900, 1, 1), to_date=date(9999, 12, 31))
        with self.assertRaises(NoDataError) as ctx:
            run("tabular", all_time, transactions=[])
        self.assertEqual(ctx.exception.kind, "no_data")

    def test_inverted_range_is_no_data(self):
        inverted = DateRange(from_date=date(2024, 1, 31), to_date=date(2024, 1, 1))
        with self.assertRaises(NoDataError):
            run("report", inverted)

    def test_unknown_format_is_unsupported(self):
        with self.assertRaises(UnsupportedFormatError) as ctx:
            run("xml")
        self.assertEqual(ctx.exception.kind, "unsupported_format")
        self.assertIsInstance(ctx.exception, ExportError)

    def test_unsupported_format_checked_before_data(self):
        with self.assertRaises(UnsupportedFormatError):
            run("xml", transactions=[])

    def test_renderer_failure_is_wrapped(self):
        with mock.patch("finexport.services.export.render_tabular", side_effect=MemoryError("out of memory")):
            with self.assertRaises(RenderFailureError) as ctx:
                run("tabular")
        self.assertIsInstance(ctx.exception.__cause__, MemoryError)
        self.assertEqual(ctx.exception.kind, "render_failure")
        self.assertNotIn("42.10", ctx.exception.message)

    def test_export_filename(self):
        self.assertEqual(
            export_filename(ExportFormat.REPORT, DateRange(from_date=date(2024, 3, 1), to_date=date(2024, 3, 31))),
            "transactions_2024-03-01_to_2024-03-31.pdf",
        )


class ExportPreviewTests(unittest.TestCase):
    def test_preview_summarizes_range(self):
        result = preview(JANUARY, TRANSACTIONS, ACCOUNTS, CATEGORIES)

        self.assertEqual(result["range"], {"from": "2024-01-01", "to": "2024-01-31"})
        self.assertEqual(result["summary"]["count"], 2)
        self.assertEqual(result["summary"]["total_income"], "2500.00")
        self.assertEqual(result["summary"]["total_expense"], "-42.10")
        self.assertEqual(result["summary"]["net"], "2457.90")

    def test_preview_of_empty_range_is_zero(self):
        result = preview(DateRange(from_date=date(2030, 1, 1), to_date=date(2030, 1, 31)), TRANSACTIONS, ACCOUNTS, CATEGORIES)
        self.assertEqual(result["summary"]["count"], 0)
        self.assertEqual(result["summary"]["net"], "0.00")


if __name__ == "__main__":
    unittest.main()
