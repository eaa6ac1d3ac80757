"""
Transaction CRUD operations:
- Role-gated visibility (sale users only reach their own rows)
- Derived amounts recomputed on every write
- Sequential IDs per year-month, unique by primary key, retried on collision
"""
from sqlalchemy import select, update, or_, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select
import logging
from datetime import date, datetime, time
from typing import List, Optional, Dict, Any

from ozifin.config import settings
from ozifin.crud.base import CRUDBase
from ozifin.dependencies import is_privileged
from ozifin.models import Transaction, User
from ozifin.schemas.transactions import (
    TransactionCreate, TransactionUpdate, TransactionFilters, ImageCategory
)
from ozifin.utils.finance import derive_amounts, next_transaction_id, to_decimal, transaction_id_prefix

logger = logging.getLogger(__name__)

SUGGESTION_SCAN_LIMIT = 50


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max)


class CRUDTransaction(CRUDBase[Transaction]):
    def __init__(self):
        super().__init__(Transaction)

    # ====================
    # Visibility
    # ====================

    def visible_to(self, stmt: Select, user: User) -> Select:
        """Restrict a select() to the rows ``user`` may see."""
        if is_privileged(user):
            return stmt
        return stmt.where(Transaction.created_by == user.username)

    def apply_filters(self, stmt: Select, filters: Optional[TransactionFilters]) -> Select:
        if filters is None:
            return stmt
        if filters.start_date:
            stmt = stmt.where(Transaction.timestamp >= start_of_day(filters.start_date))
        if filters.end_date:
            stmt = stmt.where(Transaction.timestamp <= end_of_day(filters.end_date))
        if filters.customer:
            term = f"%{filters.customer.lower()}%"
            stmt = stmt.where(or_(
                func.lower(Transaction.customer).like(term),
                func.lower(Transaction.sale).like(term),
            ))
        if filters.type:
            stmt = stmt.where(Transaction.type == filters.type.value)
        return stmt

    def list_visible(
        self, db: Session, user: User, filters: Optional[TransactionFilters] = None
    ) -> List[Transaction]:
        """Newest first, filtered and role-gated"""
        stmt = self.visible_to(select(Transaction), user)
        stmt = self.apply_filters(stmt, filters)
        stmt = stmt.order_by(Transaction.timestamp.desc(), Transaction.id.desc())
        return list(db.execute(stmt).scalars().all())

    def get_visible(self, db: Session, id: str, user: User) -> Optional[Transaction]:
        stmt = self.visible_to(select(Transaction).where(Transaction.id == id), user)
        return db.execute(stmt).scalar_one_or_none()

    def list_month(self, db: Session, user: User, year: int, month: int) -> List[Transaction]:
        first = date(year, month, 1)
        last = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
        stmt = self.visible_to(select(Transaction), user).where(
            Transaction.timestamp >= start_of_day(first),
            Transaction.timestamp < start_of_day(last),
        ).order_by(Transaction.timestamp.desc(), Transaction.id.desc())
        return list(db.execute(stmt).scalars().all())

    # ====================
    # Edit permission
    # ====================

    def can_edit(self, txn: Transaction, user: User) -> bool:
        """Admins and managers always; the creator until the edit limit is used up."""
        if is_privileged(user):
            return True
        return txn.created_by == user.username and (txn.edit_count or 0) < settings.MAX_OWNER_EDITS

    # ====================
    # ID generation
    # ====================

    def generate_id(self, db: Session, target: date) -> str:
        """Scan the IDs already used in the target's year-month and take the next one."""
        prefix = transaction_id_prefix(target)
        stmt = select(Transaction.id).where(Transaction.id.like(f"{prefix}%"))
        existing = db.execute(stmt).scalars().all()
        return next_transaction_id(target, existing)

    # ====================
    # Writes
    # ====================

    def _money_fields(self, amount, pos_fee, cust_fee) -> Dict[str, Any]:
        derived = derive_amounts(amount, pos_fee, cust_fee)
        return {
            "amount": to_decimal(amount),
            "pos_fee": to_decimal(pos_fee),
            "cust_fee": to_decimal(cust_fee),
            "pos_amt": derived.pos_amt,
            "cust_amt": derived.cust_amt,
            "profit": derived.profit,
        }

    def create_for_user(self, db: Session, *, obj_in: TransactionCreate, user: User) -> Transaction:
        """
        Insert a new transaction with the next free ID.
        A concurrent insert taking the same ID fails on the primary key and the scan is retried.
        """
        data = obj_in.model_dump(exclude={"timestamp", "sale", "amount", "pos_fee", "cust_fee"})
        data["type"] = obj_in.type.value
        data["status"] = obj_in.status.value
        data["withdraw_amt"] = to_decimal(obj_in.withdraw_amt)
        data.update(self._money_fields(obj_in.amount, obj_in.pos_fee, obj_in.cust_fee))
        if is_privileged(user) and obj_in.sale:
            data["sale"] = obj_in.sale
        else:
            data["sale"] = user.display_name

        def attempt() -> Transaction:
            txn = Transaction(
                id=self.generate_id(db, obj_in.timestamp),
                timestamp=start_of_day(obj_in.timestamp),
                created_by=user.username,
                edit_count=0,
                **data
            )
            db.add(txn)
            db.commit()
            db.refresh(txn)
            return txn

        txn = self.retry_on_integrity_error(db, attempt, max_retries=settings.TRANSACTION_ID_RETRIES)
        logger.info(f"Transaction {txn.id} created by {user.username}")
        return txn

    def update_for_user(
        self, db: Session, *, txn: Transaction, obj_in: TransactionUpdate, user: User
    ) -> Transaction:
        """Apply an edit, recompute the derived legs and count the edit."""
        changes = obj_in.model_dump(exclude_unset=True)

        if "timestamp" in changes and changes["timestamp"] is not None:
            txn.timestamp = start_of_day(changes.pop("timestamp"))
        else:
            changes.pop("timestamp", None)
        if not is_privileged(user):
            changes.pop("sale", None)
        for field in ("type", "status"):
            if changes.get(field) is not None:
                changes[field] = changes[field].value

        amount = changes.pop("amount", txn.amount)
        pos_fee = changes.pop("pos_fee", txn.pos_fee)
        cust_fee = changes.pop("cust_fee", txn.cust_fee)
        if "withdraw_amt" in changes:
            changes["withdraw_amt"] = to_decimal(changes["withdraw_amt"])

        for field, value in changes.items():
            if value is None and field != "pos":
                continue
            setattr(txn, field, value)
        for field, value in self._money_fields(amount, pos_fee, cust_fee).items():
            setattr(txn, field, value)

        txn.edit_count = (txn.edit_count or 0) + 1
        txn.updated_at = datetime.utcnow()
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise
        db.refresh(txn)
        logger.info(f"Transaction {txn.id} edited by {user.username} (edit #{txn.edit_count})")
        return txn

    def append_images(
        self, db: Session, *, txn: Transaction, category: ImageCategory, urls: List[str]
    ) -> Transaction:
        field = category.field_name
        setattr(txn, field, list(getattr(txn, field) or []) + list(urls))
        db.commit()
        db.refresh(txn)
        return txn

    def rename_sale(self, db: Session, *, username: str, display_name: str) -> int:
        """Rewrite the salesperson name on every transaction the user created.
        Leaves the commit to the caller so the profile change and the rename land together.
        """
        stmt = (
            update(Transaction)
            .where(Transaction.created_by == username)
            .values(sale=display_name)
        )
        result = db.execute(stmt)
        return result.rowcount or 0

    # ====================
    # Customer suggestions
    # ====================

    def customer_suggestions(self, db: Session, term: str, user: User) -> List[Dict[str, str]]:
        """Distinct customer/card combinations matching ``term``, newest first."""
        if not term.strip():
            return []
        stmt = self.visible_to(
            select(Transaction.customer, Transaction.bank, Transaction.card_type, Transaction.last4),
            user,
        ).where(
            func.lower(Transaction.customer).like(f"%{term.strip().lower()}%")
        ).order_by(Transaction.timestamp.desc()).limit(SUGGESTION_SCAN_LIMIT)

        seen = set()
        suggestions = []
        for customer, bank, card_type, last4 in db.execute(stmt).all():
            key = (customer, bank, card_type, last4)
            if key in seen:
                continue
            seen.add(key)
            suggestions.append({
                "customer": customer,
                "bank": bank,
                "card_type": card_type,
                "last4": last4,
            })
        return suggestions


crud_transaction = CRUDTransaction()
