"""Inventory: product list, add/edit/delete, bill import and CSV export."""
import io

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from ai.reply_schema import BillItem
from app.api.deps import get_vendor_session
from app.core.exceptions import BusinessError, PharmacyError
from app.schemas.product import ProductListResponse, ProductResponse, ProductSave
from app.services import inventory_service
from app.services.session import VendorSession

router = APIRouter()


def _listing(products) -> ProductListResponse:
    return ProductListResponse(
        products=[ProductResponse.model_validate(p) for p in products],
        count=len(products),
    )


@router.get("", response_model=ProductListResponse)
def list_products(
    search: str | None = Query(None),
    filter: str = Query("all", description="all, zero-stock or low-stock"),
    session: VendorSession = Depends(get_vendor_session),
):
    """Products sorted by name; search matches name, usage or location."""
    try:
        return _listing(inventory_service.list_products(session, search=search, stock_filter=filter))
    except PharmacyError as e:
        raise BusinessError.from_domain(e)


@router.post("", response_model=ProductListResponse, status_code=201)
def create_product(data: ProductSave, session: VendorSession = Depends(get_vendor_session)):
    try:
        return _listing(inventory_service.save_product(session, data.model_copy(update={"id": None})))
    except PharmacyError as e:
        raise BusinessError.from_domain(e)


@router.put("/{product_id}", response_model=ProductListResponse)
def update_product(product_id: str, data: ProductSave, session: VendorSession = Depends(get_vendor_session)):
    try:
        return _listing(inventory_service.save_product(session, data.model_copy(update={"id": product_id})))
    except PharmacyError as e:
        raise BusinessError.from_domain(e)


@router.delete("/{product_id}", response_model=ProductListResponse)
def delete_product(product_id: str, session: VendorSession = Depends(get_vendor_session)):
    try:
        return _listing(inventory_service.delete_product(session, product_id))
    except PharmacyError as e:
        raise BusinessError.from_domain(e)


@router.post("/bulk-upsert", response_model=ProductListResponse)
def bulk_upsert(items: list[BillItem], session: VendorSession = Depends(get_vendor_session)):
    """Merge bill lines into stock by case-insensitive name."""
    try:
        return _listing(inventory_service.bulk_upsert(session, items))
    except PharmacyError as e:
        raise BusinessError.from_domain(e)


@router.get("/low-stock", response_model=list[ProductResponse])
def low_stock(session: VendorSession = Depends(get_vendor_session)):
    try:
        return inventory_service.low_stock_products(session)
    except PharmacyError as e:
        raise BusinessError.from_domain(e)


@router.get("/export.csv")
def export_inventory(session: VendorSession = Depends(get_vendor_session)):
    try:
        data = inventory_service.export_inventory_csv(session)
    except PharmacyError as e:
        raise BusinessError.from_domain(e)

    return StreamingResponse(
        io.BytesIO(data.encode("utf-8")),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=inventory.csv"},
    )
