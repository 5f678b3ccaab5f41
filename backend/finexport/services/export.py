from collections.abc import Sequence
from typing import Any

from finexport.core.config import REPORT_ROWS_PER_PAGE
from finexport.core.log import get_logger
from finexport.models.export import (
    Account,
    Category,
    DateRange,
    ExportDocument,
    ExportFormat,
    ExportRequest,
    Transaction,
)
from finexport.services.formatting import format_amount, format_date
from finexport.services.records import ResolveStats, filter_transactions, resolve_transactions
from finexport.services.renderers import REPORT_TITLE, render_report, render_tabular, summarize

logger = get_logger(__name__)

MEDIA_TYPES = {
    ExportFormat.TABULAR: "text/csv; charset=utf-8",
    ExportFormat.REPORT: "application/pdf",
}
EXTENSIONS = {
    ExportFormat.TABULAR: "csv",
    ExportFormat.REPORT: "pdf",
}


class ExportError(Exception):
    kind = "export_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NoDataError(ExportError):
    kind = "no_data"


class UnsupportedFormatError(ExportError):
    kind = "unsupported_format"


class RenderFailureError(ExportError):
    kind = "render_failure"


def export_filename(export_format: ExportFormat, date_range: DateRange) -> str:
    from_date = format_date(date_range.from_date)
    to_date = format_date(date_range.to_date)
    return f"transactions_{from_date}_to_{to_date}.{EXTENSIONS[export_format]}"


def execute(
    request: ExportRequest,
    transactions: Sequence[Transaction],
    accounts: Sequence[Account],
    categories: Sequence[Category],
    rows_per_page: int = REPORT_ROWS_PER_PAGE,
    title: str = REPORT_TITLE,
    currency: str = "USD",
) -> ExportDocument:
    """Render the transactions inside ``request.range`` in the requested format.

    Raises NoDataError when nothing falls inside the range, UnsupportedFormatError
    for an unknown format, and RenderFailureError (chained to the original error)
    when a renderer fails. A document is only returned when fully rendered.
    """
    try:
        export_format = ExportFormat.parse(request.format)
    except ValueError:
        logger.warning("export_unsupported_format")
        raise UnsupportedFormatError("Invalid export format") from None

    logger.info("export_started", format=export_format.value)
    selected = filter_transactions(transactions, request.range)
    if not selected:
        logger.info("export_no_data", format=export_format.value)
        raise NoDataError("No transactions found for the selected date range")

    stats = ResolveStats()
    resolved = resolve_transactions(selected, accounts, categories, stats)
    if stats.missing_accounts or stats.missing_categories:
        logger.warning(
            "export_unresolved_references",
            missing_accounts=stats.missing_accounts,
            missing_categories=stats.missing_categories,
        )

    try:
        if export_format == ExportFormat.TABULAR:
            content = render_tabular(resolved)
        elif export_format == ExportFormat.REPORT:
            content = render_report(
                resolved,
                request.range,
                rows_per_page=rows_per_page,
                title=title,
                currency=currency,
            )
        else:
            raise UnsupportedFormatError("Invalid export format")
    except ExportError:
        raise
    except Exception as exc:
        logger.error("export_render_failed", format=export_format.value, error_type=type(exc).__name__)
        raise RenderFailureError("Export failed while rendering the document") from exc

    logger.info("export_completed", format=export_format.value, rows=len(resolved), size=len(content))
    return ExportDocument(
        content=content,
        media_type=MEDIA_TYPES[export_format],
        filename=export_filename(export_format, request.range),
        row_count=len(resolved),
    )


def preview(
    date_range: DateRange,
    transactions: Sequence[Transaction],
    accounts: Sequence[Account],
    categories: Sequence[Category],
) -> dict[str, Any]:
    selected = filter_transactions(transactions, date_range)
    summary = summarize(resolve_transactions(selected, accounts, categories))
    return {
        "range": {"from": format_date(date_range.from_date), "to": format_date(date_range.to_date)},
        "summary": {
            "count": summary.count,
            "total_income": format_amount(summary.total_income),
            "total_expense": format_amount(summary.total_expense),
            "total_transfer": format_amount(summary.total_transfer),
            "net": format_amount(summary.net),
        },
    }
