from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from finexport.core.config import settings
from finexport.models.export import DateRange, ExportPayload, ExportRequest, PreviewPayload
from finexport.services.export import execute, preview

router = APIRouter()


def _enforce_payload_size(payload: PreviewPayload) -> None:
    if len(payload.transactions) > settings.max_transactions:
        raise HTTPException(status_code=413, detail="Too many transactions to export")


@router.get("/health")
def health():
    return {"ok": True}


@router.post("/export/preview")
def export_preview(payload: PreviewPayload):
    _enforce_payload_size(payload)
    date_range = DateRange(from_date=payload.from_date, to_date=payload.to_date)
    return preview(date_range, payload.transactions, payload.accounts, payload.categories)


@router.post("/export")
def export_transactions(payload: ExportPayload):
    _enforce_payload_size(payload)
    request = ExportRequest(
        format=payload.format,
        range=DateRange(from_date=payload.from_date, to_date=payload.to_date),
    )
    document = execute(
        request,
        payload.transactions,
        payload.accounts,
        payload.categories,
        rows_per_page=settings.report_rows_per_page,
        title=settings.report_title,
        currency=settings.currency,
    )
    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={"Content-Disposition": f'attachment; filename="{document.filename}"'},
    )
