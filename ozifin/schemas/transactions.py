"""
Transaction schemas.
Derived legs (pos_amt, cust_amt, profit) are never accepted from clients;
they are recomputed from amount and the two fee percentages.
"""
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
import unicodedata


class TransactionType(str, Enum):
    WITHDRAW = "Rút"
    SETTLE = "Đáo"
    WITHDRAW_SETTLE = "Rút+Đáo"


class TransactionStatus(str, Enum):
    UNPAID = "Chưa thanh toán"
    PAID = "Đã thanh toán"


class ImageCategory(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    INVOICE = "invoice"

    @property
    def field_name(self) -> str:
        return f"img_{self.value}"


def no_control_chars(v: Optional[str]) -> Optional[str]:
    """Newlines and tabs would split a row in the CSV export"""
    if v is not None and any(unicodedata.category(ch) == "Cc" for ch in v):
        raise ValueError("must not contain control characters")
    return v


class TransactionBase(BaseModel):
    agency: str = Field("", max_length=100)
    customer: str = Field(..., min_length=1, max_length=150)
    bank: str = Field("", max_length=100)
    card_type: str = Field("", max_length=50)
    last4: str = Field("", max_length=4)
    type: TransactionType = TransactionType.WITHDRAW
    amount: Optional[Decimal] = Decimal("0")
    withdraw_amt: Optional[Decimal] = Decimal("0")
    pos: Optional[str] = None
    pos_fee: Optional[Decimal] = Decimal("0")
    cust_fee: Optional[Decimal] = Decimal("0")
    status: TransactionStatus = TransactionStatus.PAID
    img_deposit: List[str] = Field(default_factory=list)
    img_withdraw: List[str] = Field(default_factory=list)
    img_invoice: List[str] = Field(default_factory=list)

    @field_validator("agency", "customer", "bank")
    @classmethod
    def check_text(cls, v: str) -> str:
        return no_control_chars(v)


class TransactionCreate(TransactionBase):
    timestamp: date = Field(default_factory=date.today)
    sale: Optional[str] = None  # defaults to the creator's display name

    @field_validator("sale")
    @classmethod
    def check_sale(cls, v: Optional[str]) -> Optional[str]:
        return no_control_chars(v)


class TransactionUpdate(BaseModel):
    timestamp: Optional[date] = None
    sale: Optional[str] = None
    agency: Optional[str] = None
    customer: Optional[str] = Field(None, min_length=1, max_length=150)
    bank: Optional[str] = None
    card_type: Optional[str] = None
    last4: Optional[str] = Field(None, max_length=4)
    type: Optional[TransactionType] = None
    amount: Optional[Decimal] = None
    withdraw_amt: Optional[Decimal] = None
    pos: Optional[str] = None
    pos_fee: Optional[Decimal] = None
    cust_fee: Optional[Decimal] = None
    status: Optional[TransactionStatus] = None
    img_deposit: Optional[List[str]] = None
    img_withdraw: Optional[List[str]] = None
    img_invoice: Optional[List[str]] = None

    @field_validator("sale", "agency", "customer", "bank")
    @classmethod
    def check_text(cls, v: Optional[str]) -> Optional[str]:
        return no_control_chars(v)


class TransactionResponse(BaseModel):
    id: str
    timestamp: datetime
    sale: str
    agency: str
    customer: str
    bank: str
    card_type: str
    last4: str
    type: str
    amount: float
    withdraw_amt: Optional[float] = 0
    pos: Optional[str] = None
    pos_fee: Optional[float] = 0
    pos_amt: Optional[float] = 0
    cust_fee: Optional[float] = 0
    cust_amt: Optional[float] = 0
    profit: Optional[float] = 0
    status: str
    img_deposit: List[str] = []
    img_withdraw: List[str] = []
    img_invoice: List[str] = []
    created_by: str
    edit_count: int
    can_edit: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TransactionListResponse(BaseModel):
    transactions: List[TransactionResponse]
    total: int
    total_volume: float
    page: int
    page_size: int
    total_pages: int


class TransactionFilters(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    customer: Optional[str] = None  # matches customer or sale
    type: Optional[TransactionType] = None


class CustomerSuggestion(BaseModel):
    customer: str
    bank: str
    card_type: str
    last4: str
