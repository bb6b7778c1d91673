"""Sales & orders: transaction history, receipts, summary and reset."""
import io

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse

from app.api.deps import get_vendor_session
from app.core.exceptions import BusinessError, PharmacyError
from app.schemas.transaction import ResetResult, SalesReport, TransactionResponse
from app.services import transaction_service
from app.services.receipt_service import format_receipt_text, generate_receipt_pdf, short_id
from app.services.session import VendorSession

router = APIRouter()


@router.get("/transactions", response_model=list[TransactionResponse])
def list_transactions(session: VendorSession = Depends(get_vendor_session)):
    """Newest first."""
    try:
        return transaction_service.list_transactions(session)
    except PharmacyError as e:
        raise BusinessError.from_domain(e)


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
def get_transaction(transaction_id: str, session: VendorSession = Depends(get_vendor_session)):
    try:
        return transaction_service.get_transaction(session, transaction_id)
    except PharmacyError as e:
        raise BusinessError.from_domain(e)


@router.get("/transactions/{transaction_id}/receipt", response_class=PlainTextResponse)
def receipt_text(transaction_id: str, session: VendorSession = Depends(get_vendor_session)):
    try:
        tx = transaction_service.get_transaction(session, transaction_id)
    except PharmacyError as e:
        raise BusinessError.from_domain(e)
    return format_receipt_text(tx)


@router.get("/transactions/{transaction_id}/receipt.pdf")
def receipt_pdf(transaction_id: str, session: VendorSession = Depends(get_vendor_session)):
    """Printable receipt."""
    try:
        tx = transaction_service.get_transaction(session, transaction_id)
    except PharmacyError as e:
        raise BusinessError.from_domain(e)

    pdf_buffer = generate_receipt_pdf(tx)
    return StreamingResponse(
        pdf_buffer,
        media_type="application/pdf",
        headers={"Content-Disposition": f"inline; filename=receipt_{short_id(tx)}.pdf"},
    )


@router.delete("/transactions", response_model=ResetResult)
def reset_history(session: VendorSession = Depends(get_vendor_session)):
    """Delete all sales. On failure the unchanged history is returned with the error."""
    try:
        result = transaction_service.reset_transactions(session)
    except PharmacyError as e:
        raise BusinessError.from_domain(e)

    if not result.success:
        return JSONResponse(status_code=500, content=result.model_dump(mode="json"))
    return result


@router.get("/summary", response_model=SalesReport)
def summary(session: VendorSession = Depends(get_vendor_session)):
    """Revenue, items sold, best sellers and low-stock alerts."""
    try:
        return transaction_service.sales_summary(session)
    except PharmacyError as e:
        raise BusinessError.from_domain(e)


@router.get("/export.csv")
def export_transactions(session: VendorSession = Depends(get_vendor_session)):
    try:
        data = transaction_service.export_transactions_csv(session)
    except PharmacyError as e:
        raise BusinessError.from_domain(e)

    return StreamingResponse(
        io.BytesIO(data.encode("utf-8")),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=transactions.csv"},
    )
