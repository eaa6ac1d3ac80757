"""
Transaction ledger router.
Visibility is role-gated in the query layer; rows another user may not see answer 404.
"""
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import StreamingResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from io import StringIO
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

from ozifin.config import settings
from ozifin.database import get_db
from ozifin import models
from ozifin.crud.transactions import crud_transaction
from ozifin.dependencies import require_privileged
from ozifin.schemas.transactions import (
    CustomerSuggestion,
    ImageCategory,
    TransactionCreate,
    TransactionFilters,
    TransactionListResponse,
    TransactionResponse,
    TransactionType,
    TransactionUpdate,
)
from ozifin.security import get_current_user, audit_log_action
from ozifin.utils.csv_export import transactions_to_csv
from ozifin.utils.imgbb import ImgBBClient, ImageUploadError, get_image_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transactions", tags=["transactions"])

PAGE_SIZE = 10


def get_filters(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    customer: Optional[str] = Query(None, description="Matches customer or sale name"),
    type: Optional[TransactionType] = Query(None),
) -> TransactionFilters:
    return TransactionFilters(start_date=start_date, end_date=end_date, customer=customer, type=type)


def to_response(txn: models.Transaction, user: models.User) -> TransactionResponse:
    response = TransactionResponse.model_validate(txn)
    response.can_edit = crud_transaction.can_edit(txn, user)
    return response


def snapshot(txn: models.Transaction) -> Dict[str, Any]:
    """JSON-safe copy of a row for the audit trail"""
    return TransactionResponse.model_validate(txn).model_dump(mode="json", exclude={"can_edit"})


def get_visible_or_404(db: Session, id: str, user: models.User) -> models.Transaction:
    txn = crud_transaction.get_visible(db, id, user)
    if not txn:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Transaction not found"
        )
    return txn


async def upload_files(files: List[UploadFile], image_client: ImgBBClient) -> List[str]:
    urls = []
    for upload in files:
        content = await upload.read()
        try:
            urls.append(await run_in_threadpool(image_client.upload_bytes, content))
        except ImageUploadError as e:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=str(e)
            )
    return urls


# -----------------------------
# Listing and export
# -----------------------------
@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    page: int = Query(1, ge=1),
    page_size: int = Query(PAGE_SIZE, ge=1, le=100),
    filters: TransactionFilters = Depends(get_filters),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Newest first. Totals cover every filtered row, not just the page.
    """
    rows = crud_transaction.list_visible(db, current_user, filters)
    total = len(rows)
    total_volume = sum((Decimal(str(t.amount or 0)) for t in rows), Decimal("0"))
    start = (page - 1) * page_size

    return TransactionListResponse(
        transactions=[to_response(t, current_user) for t in rows[start:start + page_size]],
        total=total,
        total_volume=float(total_volume),
        page=page,
        page_size=page_size,
        total_pages=(total + page_size - 1) // page_size,
    )


@router.get("/export")
async def export_transactions(
    filters: TransactionFilters = Depends(get_filters),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    rows = crud_transaction.list_visible(db, current_user, filters)
    output = StringIO(transactions_to_csv(rows))

    filename = f"transactions_{datetime.now().strftime('%Y-%m-%d')}.csv"
    logger.info(f"{current_user.username} exported {len(rows)} transaction(s)")
    return StreamingResponse(
        output,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


@router.get("/suggestions", response_model=List[CustomerSuggestion])
async def customer_suggestions(
    q: str = Query("", description="Customer name fragment"),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return crud_transaction.customer_suggestions(db, q, current_user)


@router.post("/images")
async def upload_images(
    files: List[UploadFile] = File(...),
    current_user: models.User = Depends(get_current_user),
    image_client: ImgBBClient = Depends(get_image_client)
) -> Dict[str, Any]:
    """Upload images before the transaction is saved; the URLs go into the create payload."""
    return {"urls": await upload_files(files, image_client)}


# -----------------------------
# Single transaction
# -----------------------------
@router.get("/{id}", response_model=TransactionResponse)
async def get_transaction(
    id: str,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return to_response(get_visible_or_404(db, id, current_user), current_user)


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    txn_in: TransactionCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        txn = crud_transaction.create_for_user(db, obj_in=txn_in, user=current_user)
    except IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Could not allocate a transaction ID, please try again"
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error saving transaction: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save transaction"
        )

    audit_log_action(
        db=db,
        user_id=current_user.id,
        action="TRANSACTION_CREATE",
        table_name="transactions",
        record_id=txn.id,
        new_values=snapshot(txn)
    )

    return to_response(txn, current_user)


@router.put("/{id}", response_model=TransactionResponse)
async def update_transaction(
    id: str,
    txn_in: TransactionUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Edit a transaction. Derived amounts are recomputed and the edit is counted.
    The creator is limited to MAX_OWNER_EDITS edits; admins and managers are not.
    """
    txn = get_visible_or_404(db, id, current_user)
    if not crud_transaction.can_edit(txn, current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Edit limit reached (max {settings.MAX_OWNER_EDITS})"
        )

    old_values = snapshot(txn)
    try:
        txn = crud_transaction.update_for_user(db, txn=txn, obj_in=txn_in, user=current_user)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error updating transaction {id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save transaction"
        )

    audit_log_action(
        db=db,
        user_id=current_user.id,
        action="TRANSACTION_UPDATE",
        table_name="transactions",
        record_id=txn.id,
        old_values=old_values,
        new_values=snapshot(txn)
    )

    return to_response(txn, current_user)


@router.delete("/{id}")
async def delete_transaction(
    id: str,
    current_user: models.User = Depends(require_privileged),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    txn = get_visible_or_404(db, id, current_user)
    old_values = snapshot(txn)

    if crud_transaction.remove(db, id=txn.id) is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete transaction"
        )

    audit_log_action(
        db=db,
        user_id=current_user.id,
        action="TRANSACTION_DELETE",
        table_name="transactions",
        record_id=id,
        old_values=old_values
    )

    return {"id": id, "deleted": True}


@router.post("/{id}/images/{category}", response_model=TransactionResponse)
async def attach_images(
    id: str,
    category: ImageCategory,
    files: List[UploadFile] = File(...),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
    image_client: ImgBBClient = Depends(get_image_client)
):
    """Upload images and append their URLs to the deposit, withdraw or invoice list."""
    txn = get_visible_or_404(db, id, current_user)
    if not crud_transaction.can_edit(txn, current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Edit limit reached (max {settings.MAX_OWNER_EDITS})"
        )

    urls = await upload_files(files, image_client)
    txn = crud_transaction.append_images(db, txn=txn, category=category, urls=urls)
    return to_response(txn, current_user)
