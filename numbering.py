"""
Sequential invoice numbers.

Format: ``{companyName}/{DDMMYYYY}/{NNN}/{bw|aw}``, one independent sequence
per (company, day, warranty status). The counter lives in the
``invoicecounter`` collection and is bumped with a single upsert so two
concurrent requests can never read the same value.
"""
from datetime import datetime, timezone
from typing import Optional

from loguru import logger
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from database import INVOICE_COUNTER
from errors import InternalError, ValidationError
from schemas import InvoiceCounter, WarrantyStatus


def format_date(when: Optional[datetime] = None) -> str:
    """DDMMYYYY for `when`, defaulting to the server's local clock."""
    when = when or datetime.now()
    return when.strftime("%d%m%Y")


def warranty_suffix(warranty_status) -> str:
    return WarrantyStatus(warranty_status).suffix


def parse_warranty_status(value) -> WarrantyStatus:
    try:
        return WarrantyStatus(value)
    except ValueError:
        raise ValidationError("Warranty status must be 'Before' or 'After'")


def _bump(db, key: dict, now: datetime) -> int:
    doc = db[INVOICE_COUNTER].find_one_and_update(
        key,
        {"$inc": {"counter": 1}, "$set": {"lastUpdated": now}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return int(doc["counter"])


def allocate_counter(db, company_name: str, warranty_status, day: str) -> int:
    """Atomically create-or-increment the counter for the key, return the new value."""
    record = InvoiceCounter(company_name=company_name, date=day, warranty_status=parse_warranty_status(warranty_status))
    key = record.model_dump(by_alias=True, include={"company_name", "date", "warranty_status"})
    now = datetime.now(timezone.utc)
    try:
        try:
            return _bump(db, key, now)
        except DuplicateKeyError:
            # Lost a first-insert race on the unique key; the document exists now.
            return _bump(db, key, now)
    except PyMongoError as exc:
        logger.exception("Error allocating invoice counter for {}", key)
        raise InternalError() from exc


def next_invoice_number(db, company_name: str, warranty_status, when: Optional[datetime] = None) -> str:
    day = format_date(when)
    counter = allocate_counter(db, company_name, warranty_status, day)
    number = f"{company_name}/{day}/{counter:03d}/{warranty_suffix(warranty_status)}"
    logger.info("Allocated invoice number {}", number)
    return number
