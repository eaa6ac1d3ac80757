"""
SQLAlchemy 2.x models.
Usernames are the foreign keys for ownership columns (created_by, user_id)
so rows survive user deletion, as the ledger requires.
"""
from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, ForeignKey, Text, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from decimal import Decimal

from ozifin.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    display_name = Column(String(100), nullable=False)
    role = Column(String(20), nullable=False, default='sale')
    avatar_url = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    audit_logs = relationship("AuditLog", back_populates="user_rel")


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(String(32), primary_key=True)  # Ozi-YYYY-MM-NNN
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    sale = Column(String(100), nullable=False, default='')
    agency = Column(String(100), nullable=False, default='')
    customer = Column(String(150), nullable=False)
    bank = Column(String(100), nullable=False, default='')
    card_type = Column(String(50), nullable=False, default='')
    last4 = Column(String(4), nullable=False, default='')
    type = Column(String(20), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False, default=Decimal('0'))
    withdraw_amt = Column(Numeric(15, 2), default=Decimal('0'))
    pos = Column(String(100))
    pos_fee = Column(Numeric(7, 3), default=Decimal('0'))
    pos_amt = Column(Numeric(15, 2), default=Decimal('0'))
    cust_fee = Column(Numeric(7, 3), default=Decimal('0'))
    cust_amt = Column(Numeric(15, 2), default=Decimal('0'))
    profit = Column(Numeric(15, 2), default=Decimal('0'))
    status = Column(String(30), nullable=False)
    img_deposit = Column(JSON, nullable=False, default=list)
    img_withdraw = Column(JSON, nullable=False, default=list)
    img_invoice = Column(JSON, nullable=False, default=list)
    created_by = Column(String(50), nullable=False, index=True)
    edit_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default='')  # HTML
    status = Column(String(20), nullable=False, default='todo', index=True)
    priority = Column(String(20), nullable=False, default='medium')
    assignees = Column(JSON, nullable=False, default=list)  # usernames
    tags = Column(JSON, nullable=False, default=list)
    due_date = Column(DateTime(timezone=True))
    created_by = Column(String(50), nullable=False)
    index = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    comments = relationship(
        "TaskComment", back_populates="task", cascade="all, delete-orphan",
        order_by="TaskComment.id"
    )
    history = relationship(
        "TaskHistory", back_populates="task", cascade="all, delete-orphan",
        order_by="TaskHistory.id.desc()"
    )


class TaskComment(Base):
    __tablename__ = "task_comments"

    id = Column(Integer, primary_key=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(50), nullable=False)  # username
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    task = relationship("Task", back_populates="comments")


class TaskHistory(Base):
    __tablename__ = "task_history"

    id = Column(Integer, primary_key=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(50), nullable=False)  # username
    action = Column(String(30), nullable=False)
    details = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    task = relationship("Task", back_populates="history")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(50), nullable=False, index=True)  # recipient username
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    link = Column(Text)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Setting(Base):
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True)
    category = Column(String(20), nullable=False, index=True)
    value = Column(String(150), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class AppConfig(Base):
    __tablename__ = "app_config"

    key = Column(String(50), primary_key=True)
    value = Column(Text, nullable=False, default='')
    description = Column(Text)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    action = Column(String(50), nullable=False)
    table_name = Column(String(50))
    record_id = Column(String(50))
    old_values = Column(JSON)
    new_values = Column(JSON)
    performed_at = Column(DateTime(timezone=True), server_default=func.now())
    notes = Column(Text)

    # Relationships
    user_rel = relationship("User", back_populates="audit_logs")
