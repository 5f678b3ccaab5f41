import os
from dataclasses import dataclass

REPORT_ROWS_PER_PAGE = 30
MIN_ROWS_PER_PAGE = 5
MAX_ROWS_PER_PAGE = 35


@dataclass(frozen=True)
class Settings:
    report_rows_per_page: int
    report_title: str
    currency: str
    max_transactions: int
    log_level: str
    log_json: bool


def load_settings() -> Settings:
    rows_per_page = int(os.getenv("EXPORT_ROWS_PER_PAGE", str(REPORT_ROWS_PER_PAGE)))
    rows_per_page = max(MIN_ROWS_PER_PAGE, min(MAX_ROWS_PER_PAGE, rows_per_page))

    return Settings(
        report_rows_per_page=rows_per_page,
        report_title=(os.getenv("EXPORT_REPORT_TITLE") or "").strip() or "Transaction Report",
        currency=(os.getenv("EXPORT_CURRENCY") or "USD").strip().upper() or "USD",
        max_transactions=max(1, int(os.getenv("EXPORT_MAX_TRANSACTIONS", "50000"))),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper() or "INFO",
        log_json=os.getenv("LOG_JSON", "true").lower() == "true",
    )


settings = load_settings()
