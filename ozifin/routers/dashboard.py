"""
Dashboard router: monthly stats and the PDF report.
Figures cover only the transactions the caller may see.
"""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from datetime import date
from io import BytesIO
from typing import Optional
import logging

from ozifin.database import get_db
from ozifin import models
from ozifin.crud.transactions import crud_transaction
from ozifin.routers.transactions import to_response
from ozifin.schemas.dashboard import DashboardResponse
from ozifin.security import get_current_user
from ozifin.utils.dashboard import monthly_summary
from ozifin.utils.pdf_reports import pdf_generator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def resolve_period(month: Optional[int], year: Optional[int]):
    today = date.today()
    return month or today.month, year or today.year


@router.get("", response_model=DashboardResponse)
async def get_dashboard(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    month, year = resolve_period(month, year)
    transactions = crud_transaction.list_month(db, current_user, year, month)
    summary = monthly_summary(transactions, year, month)

    return DashboardResponse(
        month=summary["month"],
        year=summary["year"],
        stats=summary["stats"],
        recent_transactions=[to_response(t, current_user) for t in summary["recent"]],
        chart=summary["chart"],
    )


@router.get("/report.pdf")
async def download_report(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    month, year = resolve_period(month, year)
    transactions = crud_transaction.list_month(db, current_user, year, month)
    summary = monthly_summary(transactions, year, month)

    pdf_bytes = pdf_generator.generate_monthly_report(
        summary, transactions, generated_by=current_user.display_name
    )
    logger.info(f"{current_user.username} generated the {month:02d}/{year} report")

    filename = f"ozifin_report_{year}_{month:02d}.pdf"
    return StreamingResponse(
        BytesIO(pdf_bytes),
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )
