from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger
from pymongo.errors import DuplicateKeyError, PyMongoError

from database import INVOICE
from errors import ConflictError, InternalError, ValidationError
from numbering import next_invoice_number, parse_warranty_status
from schemas import Invoice, Product


def create_invoice(
    db,
    *,
    query_id: Optional[str],
    customer_name: Optional[str],
    customer_address: Optional[str],
    company_name: Optional[str],
    products: Optional[List[Product]],
    warranty_status: Optional[str],
    generated_date: Optional[datetime] = None,
    subtotal: Optional[float] = None,
    tax_amount: Optional[float] = None,
    total: Optional[float] = None,
) -> Dict[str, Any]:
    """Allocate the next number for the company and store the invoice.

    Totals are stored as sent; they are not checked against the products.
    Returns the summary the client shows after saving.
    """
    if not (query_id and customer_name and customer_address and company_name and warranty_status) or products is None:
        raise ValidationError("Missing required fields")
    status = parse_warranty_status(warranty_status)

    invoice = Invoice(
        invoice_number=next_invoice_number(db, company_name, status),
        query_id=query_id,
        customer_name=customer_name,
        customer_address=customer_address,
        company_name=company_name,
        products=products,
        warranty_status=status,
        subtotal=subtotal,
        tax_amount=tax_amount,
        total=total,
        generated_date=generated_date,
    )
    try:
        result = db[INVOICE].insert_one(invoice.model_dump(by_alias=True))
    except DuplicateKeyError as exc:
        logger.warning("Invoice number {} already exists", invoice.invoice_number)
        raise ConflictError("Invoice with this number already exists") from exc
    except PyMongoError as exc:
        logger.exception("Error creating invoice {}", invoice.invoice_number)
        raise InternalError() from exc

    logger.info("Invoice {} created", invoice.invoice_number)
    return {
        "id": str(result.inserted_id),
        "invoiceNumber": invoice.invoice_number,
        "queryId": invoice.query_id,
        "customerName": invoice.customer_name,
        "companyName": invoice.company_name,
        "warrantyStatus": invoice.warranty_status,
        "total": invoice.total,
        "createdAt": invoice.created_at,
    }
