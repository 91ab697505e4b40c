"""
Database Schemas for the Invoice API

Each Pydantic model represents a MongoDB collection (lowercased class name).
Fields are stored under their camelCase alias, matching the JSON the clients
send and receive.
"""
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime, timezone
from enum import Enum


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Record(BaseModel):
    # JSON numbers (e.g. a mobile sent as 9990001111) are kept as text.
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, use_enum_values=True, coerce_numbers_to_str=True
    )


class WarrantyStatus(str, Enum):
    BEFORE = "Before"
    AFTER = "After"

    @property
    def suffix(self) -> str:
        return "bw" if self is WarrantyStatus.BEFORE else "aw"


class User(Record):
    full_name: Optional[str] = None
    dob: Optional[str] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    mobile: Optional[str] = Field(None, description="Login and lookup key")
    password: Optional[str] = Field(None, description="Stored as given")


class Message(Record):
    text: Optional[str] = None
    is_user: Optional[bool] = None
    timestamp: Optional[datetime] = None


class Chat(Record):
    mobile: str
    messages: List[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_now)


class InvoiceCounter(Record):
    company_name: str
    date: str = Field(..., pattern=r"^\d{8}$", description="DDMMYYYY")
    warranty_status: WarrantyStatus
    counter: int = 0
    last_updated: datetime = Field(default_factory=_now)


class Product(Record):
    name: str
    price: float
    quantity: int = 1


class Invoice(Record):
    invoice_number: str
    query_id: str
    customer_name: str
    customer_address: str
    company_name: str
    products: List[Product] = Field(default_factory=list)
    warranty_status: WarrantyStatus
    subtotal: Optional[float] = None
    tax_amount: Optional[float] = None
    total: Optional[float] = None
    generated_date: Optional[datetime] = None
    created_at: datetime = Field(default_factory=_now)
