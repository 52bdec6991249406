"""Chargers REST router – prefix=/api/chargers"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import HTMLResponse

from charger_qc.core.deps import get_current_user, get_dashboard, require_roles
from charger_qc.core.errors import UpdateInProgress, WriteError
from charger_qc.models.charger_model import (
    ChargerCreateIn,
    ChargerListOut,
    ChargerOut,
    CheckUpdateIn,
    LabelOut,
)
from charger_qc.services.dashboard import DashboardState, dump_record
from charger_qc.services.labels import detail_url, qr_code_url, render_label_page

logger = logging.getLogger("api.chargers")

NOT_FOUND = "Charger not found. It may have been deleted."

router = APIRouter(prefix="/chargers", tags=["chargers"])


def _get_or_404(dashboard: DashboardState, charger_id: str) -> dict:
    data = dashboard.dump(charger_id)
    if data is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, NOT_FOUND)
    return data


# ①  List (newest first) + fetch banner --------------------------------
@router.get("", response_model=ChargerListOut, dependencies=[Depends(get_current_user)])
def list_chargers(dashboard: DashboardState = Depends(get_dashboard)):
    return {"chargers": dashboard.listing(), "error": dashboard.error}


# ②  Create --------------------------------------------------------------
@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ChargerOut,
    dependencies=[Depends(require_roles("manager", "technician"))],
)
async def create_charger(payload: ChargerCreateIn, dashboard: DashboardState = Depends(get_dashboard)):
    if not payload.serial_number or not payload.model:
        raise HTTPException(422, "Serial Number and Model are required.")

    try:
        record = await dashboard.create(payload.serial_number, payload.model)
    except WriteError as e:
        logger.error("create charger %s failed: %s", payload.serial_number, e.message)
        raise HTTPException(status.HTTP_502_BAD_GATEWAY, f"Error creating quote: {e.message}")

    return dump_record(record)


# ③  Detail --------------------------------------------------------------
@router.get("/{charger_id}", response_model=ChargerOut, dependencies=[Depends(get_current_user)])
def get_charger(charger_id: str, dashboard: DashboardState = Depends(get_dashboard)):
    return _get_or_404(dashboard, charger_id)


# ④  Update one check (optimistic, rolled back on write failure) --------
@router.put(
    "/{charger_id}/checks/{check_id}",
    response_model=ChargerOut,
    dependencies=[Depends(require_roles("manager", "technician"))],
)
async def update_check(
    charger_id: str,
    check_id: int,
    payload: CheckUpdateIn,
    dashboard: DashboardState = Depends(get_dashboard),
):
    try:
        record = await dashboard.update_check(charger_id, check_id, payload.status)
    except UpdateInProgress as e:
        raise HTTPException(status.HTTP_409_CONFLICT, e.message)
    except WriteError as e:
        logger.error("update %s check %s failed: %s", charger_id, check_id, e.message)
        raise HTTPException(status.HTTP_502_BAD_GATEWAY, f"Failed to update status: {e.message}")

    if record is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, NOT_FOUND)
    return _get_or_404(dashboard, charger_id)


# ⑤  QR label ------------------------------------------------------------
@router.get(
    "/{charger_id}/label",
    response_model=LabelOut,
    dependencies=[Depends(require_roles("manager"))],
)
def get_label(charger_id: str, dashboard: DashboardState = Depends(get_dashboard)):
    _get_or_404(dashboard, charger_id)
    url = detail_url(charger_id)
    return {"url": url, "qrCodeUrl": qr_code_url(url)}


@router.get(
    "/{charger_id}/label/print",
    response_class=HTMLResponse,
    dependencies=[Depends(require_roles("manager"))],
)
def print_label(charger_id: str, dashboard: DashboardState = Depends(get_dashboard)):
    record = dashboard.find(charger_id)
    if record is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, NOT_FOUND)
    url = detail_url(charger_id)
    return render_label_page(record.serial_number, record.model, url, qr_code_url(url))
