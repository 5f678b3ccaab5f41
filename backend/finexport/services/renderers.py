import csv
import io
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, time, timezone
from decimal import Decimal
from itertools import groupby
from typing import Literal

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from finexport.core.config import MAX_ROWS_PER_PAGE, REPORT_ROWS_PER_PAGE
from finexport.models.export import DateRange, ResolvedTransaction, TransactionType
from finexport.services.formatting import (
    format_account_type,
    format_amount,
    format_date,
    format_transaction_type,
    safe_pdf_text,
    signed_amount,
    tx_day,
)

REPORT_TITLE = "Transaction Report"
TABULAR_HEADERS = ["Date", "Description", "Category", "Account", "Type", "Amount"]

# A4 portrait with 10mm margins leaves 190mm
REPORT_WIDTHS = [22, 60, 30, 32, 20, 26]
REPORT_MAX_CHARS = [10, 34, 16, 18, 10, 14]
ROW_HEIGHT = 6
ZERO = Decimal("0.00")


def tabular_row(r: ResolvedTransaction) -> list[str]:
    return [
        format_date(r.date),
        r.description,
        r.category_name,
        r.account_name,
        format_transaction_type(r.type),
        format_amount(signed_amount(r.type, r.amount)),
    ]


def render_tabular(resolved: Sequence[ResolvedTransaction]) -> bytes:
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
    writer.writerow(TABULAR_HEADERS)
    for r in resolved:
        writer.writerow(tabular_row(r))
    return output.getvalue().encode("utf-8")


@dataclass(frozen=True)
class ReportSummary:
    count: int
    total_income: Decimal
    total_expense: Decimal
    total_transfer: Decimal
    net: Decimal
    by_category: list[tuple[str, Decimal]] = field(default_factory=list)


@dataclass(frozen=True)
class ReportLine:
    kind: Literal["group", "item", "subtotal"]
    cells: list[str]


@dataclass(frozen=True)
class ReportPlan:
    title: str
    date_range: DateRange
    pages: list[list[ReportLine]]
    summary: ReportSummary


def summarize(resolved: Sequence[ResolvedTransaction]) -> ReportSummary:
    total_income = ZERO
    total_expense = ZERO
    total_transfer = ZERO
    by_category: dict[str, Decimal] = {}
    for r in resolved:
        amount = signed_amount(r.type, r.amount)
        if r.type == TransactionType.INCOME:
            total_income += amount
        elif r.type == TransactionType.EXPENSE:
            total_expense += amount
        else:
            total_transfer += amount
        by_category[r.category_name] = by_category.get(r.category_name, ZERO) + amount

    return ReportSummary(
        count=len(resolved),
        total_income=total_income,
        total_expense=total_expense,
        total_transfer=total_transfer,
        net=total_income + total_expense,
        by_category=sorted(by_category.items(), key=lambda item: (item[0].lower(), item[0])),
    )


def _sort_key(r: ResolvedTransaction) -> datetime:
    if r.date.tzinfo is not None:
        return r.date.astimezone(timezone.utc).replace(tzinfo=None)
    return r.date


def _account_cell(r: ResolvedTransaction) -> str:
    if r.account_type is None:
        return r.account_name
    return f"{r.account_name} ({format_account_type(r.account_type)})"


def plan_report(
    resolved: Sequence[ResolvedTransaction],
    date_range: DateRange,
    rows_per_page: int = REPORT_ROWS_PER_PAGE,
    title: str = REPORT_TITLE,
) -> ReportPlan:
    if not 1 <= rows_per_page <= MAX_ROWS_PER_PAGE:
        raise ValueError(f"rows_per_page must be between 1 and {MAX_ROWS_PER_PAGE}")

    ordered = sorted(resolved, key=_sort_key)
    lines: list[ReportLine] = []
    for month, group in groupby(ordered, key=lambda r: tx_day(r.date).strftime("%Y-%m")):
        subtotal = ZERO
        lines.append(ReportLine("group", [month]))
        for r in group:
            amount = signed_amount(r.type, r.amount)
            subtotal += amount
            lines.append(
                ReportLine(
                    "item",
                    [
                        format_date(r.date),
                        r.description,
                        r.category_name,
                        _account_cell(r),
                        format_transaction_type(r.type),
                        format_amount(amount, grouping=True),
                    ],
                )
            )
        lines.append(ReportLine("subtotal", [f"Subtotal {month}", format_amount(subtotal, grouping=True)]))

    return ReportPlan(
        title=title,
        date_range=date_range,
        pages=_paginate(lines, rows_per_page),
        summary=summarize(resolved),
    )


def _paginate(lines: list[ReportLine], rows_per_page: int) -> list[list[ReportLine]]:
    # a month header never ends a page; it moves down with its items
    pages: list[list[ReportLine]] = []
    current: list[ReportLine] = []
    for line in lines:
        if len(current) == rows_per_page:
            carry = [current.pop()] if current[-1].kind == "group" and len(current) > 1 else []
            pages.append(current)
            current = carry
        current.append(line)
    if current or not pages:
        pages.append(current)
    return pages


def _fit(text: str, limit: int) -> str:
    text = safe_pdf_text(text)
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text


class ReportPDF(FPDF):
    def footer(self):
        self.set_y(-12)
        self.set_font("Helvetica", "I", 8)
        self.cell(0, 8, f"Page {self.page_no()}/{{nb}}", align="C")


def _table_header(pdf: FPDF) -> None:
    pdf.set_font("Helvetica", "B", 9)
    pdf.set_fill_color(66, 139, 202)
    pdf.set_text_color(255, 255, 255)
    for idx, label in enumerate(TABULAR_HEADERS):
        pdf.cell(REPORT_WIDTHS[idx], 7, label, border=1, fill=True, align="R" if idx == 5 else "L")
    pdf.ln()
    pdf.set_text_color(0, 0, 0)


def _table_line(pdf: FPDF, line: ReportLine) -> None:
    if line.kind == "group":
        pdf.set_font("Helvetica", "B", 9)
        pdf.set_fill_color(240, 240, 240)
        pdf.cell(sum(REPORT_WIDTHS), ROW_HEIGHT, _fit(line.cells[0], 60), border=1, fill=True)
    elif line.kind == "subtotal":
        pdf.set_font("Helvetica", "B", 9)
        pdf.cell(sum(REPORT_WIDTHS[:-1]), ROW_HEIGHT, _fit(line.cells[0], 60), border=1, align="R")
        pdf.cell(REPORT_WIDTHS[-1], ROW_HEIGHT, _fit(line.cells[1], REPORT_MAX_CHARS[-1]), border=1, align="R")
    else:
        pdf.set_font("Helvetica", size=8)
        for idx, val in enumerate(line.cells):
            pdf.cell(
                REPORT_WIDTHS[idx],
                ROW_HEIGHT,
                _fit(val, REPORT_MAX_CHARS[idx]),
                border=1,
                align="R" if idx == 5 else "L",
            )
    pdf.ln()


def _summary_block(pdf: FPDF, summary: ReportSummary) -> None:
    pdf.ln(4)
    pdf.set_font("Helvetica", "B", 12)
    pdf.cell(0, 8, "Summary", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_font("Helvetica", size=10)
    totals = [
        ("Transactions", str(summary.count)),
        ("Total income", format_amount(summary.total_income, grouping=True)),
        ("Total expense", format_amount(summary.total_expense, grouping=True)),
        ("Net total", format_amount(summary.net, grouping=True)),
        ("Transfers", format_amount(summary.total_transfer, grouping=True)),
    ]
    for label, value in totals:
        pdf.cell(60, ROW_HEIGHT, label, border=1)
        pdf.cell(40, ROW_HEIGHT, value, border=1, align="R", new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    if not summary.by_category:
        return
    pdf.ln(4)
    pdf.set_font("Helvetica", "B", 12)
    pdf.cell(0, 8, "Category Breakdown", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_font("Helvetica", size=10)
    for name, amount in summary.by_category:
        pdf.cell(80, ROW_HEIGHT, _fit(name, 40), border=1)
        pdf.cell(40, ROW_HEIGHT, format_amount(amount, grouping=True), border=1, align="R", new_x=XPos.LMARGIN, new_y=YPos.NEXT)


def render_report(
    resolved: Sequence[ResolvedTransaction],
    date_range: DateRange,
    rows_per_page: int = REPORT_ROWS_PER_PAGE,
    title: str = REPORT_TITLE,
    currency: str = "USD",
) -> bytes:
    plan = plan_report(resolved, date_range, rows_per_page=rows_per_page, title=title)

    pdf = ReportPDF(orientation="P", unit="mm", format="A4")
    # pinned so identical input renders identical bytes
    pdf.creation_date = datetime.combine(date_range.to_date, time.min, tzinfo=timezone.utc)
    pdf.set_title(safe_pdf_text(plan.title))
    pdf.alias_nb_pages()
    pdf.set_margins(10, 10, 10)
    pdf.set_auto_page_break(auto=True, margin=15)

    for page_no, lines in enumerate(plan.pages):
        pdf.add_page()
        if page_no == 0:
            pdf.set_font("Helvetica", "B", 14)
            pdf.cell(0, 8, safe_pdf_text(plan.title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
            pdf.set_font("Helvetica", size=10)
            meta = (
                f"Period: {format_date(date_range.from_date)} to {format_date(date_range.to_date)}"
                f" | Currency: {safe_pdf_text(currency)} | Transactions: {plan.summary.count}"
            )
            pdf.multi_cell(0, 6, meta, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
            pdf.ln(2)
        _table_header(pdf)
        for line in lines:
            _table_line(pdf, line)

    _summary_block(pdf, plan.summary)
    return bytes(pdf.output())
