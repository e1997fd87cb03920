import logging
from datetime import date
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.responses import Response

from backup import ImportParseError
from categories import CATEGORIES, get_category
from config import get_settings
from database import SessionLocal
from metrics import DayGroup, Statistics
from models import Granularity, TransactionType, ViewMode
from periods import shift_anchor
from reconcile import ImportFormatError
from schemas import TransactionIn, TransactionRecord
from services import TransactionFilters, TransactionService
from storage import BlobStore

logging.basicConfig(level=logging.INFO)

app = FastAPI(title="Simple Bookkeeping")


@lru_cache(maxsize=1)
def get_service() -> TransactionService:
    settings = get_settings()
    store = BlobStore(SessionLocal, settings.storage_key)
    return TransactionService(store, tz=settings.tz, app_name=settings.app_name)


def filters_from_request(request: Request) -> TransactionFilters:
    type_param = request.query_params.get("type")
    txn_type = None
    if type_param:
        try:
            txn_type = TransactionType(type_param)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
    return TransactionFilters(
        type=txn_type,
        category=request.query_params.get("category") or None,
        query=request.query_params.get("q") or None,
    )


def statistics_params(
    request: Request, service: TransactionService
) -> tuple[date, Granularity, ViewMode]:
    try:
        granularity = Granularity(request.query_params.get("granularity", "month"))
        view_mode = ViewMode(request.query_params.get("view", "overview"))
        anchor_param = request.query_params.get("anchor")
        anchor = (
            date.fromisoformat(anchor_param)
            if anchor_param
            else service.clock().date()
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return anchor, granularity, view_mode


def transaction_payload(txn: TransactionRecord) -> dict[str, object]:
    payload = txn.to_record()
    payload["category_label"] = get_category(txn.category).label
    return payload


def day_group_payload(group: DayGroup) -> dict[str, object]:
    return {
        "day": group.day.isoformat(),
        "income": group.income,
        "expense": group.expense,
        "items": [transaction_payload(txn) for txn in group.items],
    }


def statistics_payload(stats: Statistics, anchor: date) -> dict[str, object]:
    period = stats.period
    return {
        "period": {
            "granularity": period.granularity.value,
            "start": period.start,
            "end": period.end,
            "label": period.label,
            "first_day": period.first_day.isoformat(),
            "last_day": period.last_day.isoformat(),
        },
        "previous_anchor": shift_anchor(anchor, period.granularity, -1).isoformat(),
        "next_anchor": shift_anchor(anchor, period.granularity, 1).isoformat(),
        "view_mode": stats.view_mode.value,
        "total_income": stats.total_income,
        "total_expense": stats.total_expense,
        "balance": stats.balance,
        "category_breakdown": [
            {
                "category": item.category,
                "label": item.label,
                "amount": item.amount,
                "percent": item.percent,
            }
            for item in stats.category_breakdown
        ],
        "trend": [
            {"label": bucket.label, "income": bucket.income, "expense": bucket.expense}
            for bucket in stats.trend
        ],
    }


@app.get("/api/categories")
def api_categories(type: Optional[TransactionType] = None):
    return [
        {
            "id": cat.id,
            "label": cat.label,
            "icon": cat.icon,
            "color": cat.color,
            "type": cat.type.value,
        }
        for cat in CATEGORIES
        if type is None or cat.type == type
    ]


@app.get("/api/transactions")
def api_transactions(
    request: Request, service: TransactionService = Depends(get_service)
):
    filters = filters_from_request(request)
    return {"items": [transaction_payload(txn) for txn in service.list(filters)]}


@app.get("/api/transactions/daily")
def api_transactions_daily(
    request: Request, service: TransactionService = Depends(get_service)
):
    filters = filters_from_request(request)
    return {"days": [day_group_payload(g) for g in service.daily_groups(filters)]}


@app.post("/api/transactions", status_code=201)
def create_transaction(
    data: TransactionIn, service: TransactionService = Depends(get_service)
):
    txn = service.create(data)
    return transaction_payload(txn)


@app.put("/api/transactions/{transaction_id}")
def update_transaction(
    transaction_id: str,
    data: TransactionIn,
    service: TransactionService = Depends(get_service),
):
    try:
        txn = service.update(transaction_id, data)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return transaction_payload(txn)


@app.delete("/api/transactions/{transaction_id}", status_code=204)
def delete_transaction(
    transaction_id: str, service: TransactionService = Depends(get_service)
):
    try:
        service.delete(transaction_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


@app.get("/api/statistics")
def api_statistics(
    request: Request, service: TransactionService = Depends(get_service)
):
    anchor, granularity, view_mode = statistics_params(request, service)
    try:
        stats = service.statistics(anchor, granularity, view_mode)
        payload = statistics_payload(stats, anchor)
    except (OverflowError, ValueError) as exc:
        # the period or its neighbours fall outside the supported calendar
        logging.info(f"statistics_rejected: anchor={anchor} granularity={granularity.value}")
        raise HTTPException(
            status_code=400, detail=f"Anchor out of range: {anchor.isoformat()}"
        ) from exc
    return payload


@app.get("/api/export")
def export_backup_endpoint(service: TransactionService = Depends(get_service)):
    filename, payload = service.export_backup()
    return Response(
        content=payload,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.post("/api/import")
async def import_backup_endpoint(
    file: UploadFile = File(...),
    service: TransactionService = Depends(get_service),
):
    content = await file.read()
    try:
        result = service.import_backup(content)
    except ImportParseError as exc:
        logging.info(f"import_rejected: reason=parse filename={file.filename}")
        raise HTTPException(
            status_code=400, detail=f"Could not read backup file: {exc}"
        ) from exc
    except ImportFormatError as exc:
        logging.info(f"import_rejected: reason=format filename={file.filename}")
        raise HTTPException(
            status_code=400, detail=f"Backup file has an unexpected format: {exc}"
        ) from exc

    if result.no_new_records:
        message = "No new records; everything in this backup already exists."
    else:
        message = f"Imported {result.added_count} new records."
    return {
        "added": result.added_count,
        "total": result.total_count,
        "message": message,
    }
