"""Auth: store registration, login and logout.

SECURITY FEATURES:
- Password hashing (pbkdf2_sha256)
- httpOnly, Secure, SameSite cookies
- Audit trail for every sign-in attempt
"""
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_vendor_session
from app.core.audit import AuditLog
from app.core.config import settings
from app.core.exceptions import BusinessError, NotFound, PharmacyError, WrongPassword
from app.core.security import create_access_token
from app.schemas.vendor import Token, VendorCredentials, VendorResponse
from app.services import vendor_service
from app.services.session import VendorSession, end_session

router = APIRouter()


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _issue_token(response: Response, vendor_id: str) -> Token:
    token = create_access_token(subject=vendor_id)
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite=settings.SAME_SITE_COOKIE,
    )
    return Token(access_token=token, vendor_id=vendor_id)


@router.post("/register", response_model=Token, status_code=201)
def register(data: VendorCredentials, request: Request, response: Response, db: Session = Depends(get_db)):
    """
    Create a store and sign it in.

    The store name is normalized into the vendor id ("Main Store" -> "main_store").
    """
    try:
        vendor_id = vendor_service.register(db, data.name, data.password)
    except PharmacyError as e:
        AuditLog.log_authentication("register", data.name, _client_ip(request), False, reason=e.message)
        raise BusinessError.from_domain(e)

    AuditLog.log_authentication("register", vendor_id, _client_ip(request), True)
    return _issue_token(response, vendor_id)


@router.post("/login", response_model=Token)
def login(data: VendorCredentials, request: Request, response: Response, db: Session = Depends(get_db)):
    """Check credentials and set the session cookie."""
    try:
        vendor_id, legacy = vendor_service.login(db, data.name, data.password)
    except (NotFound, WrongPassword) as e:
        AuditLog.log_authentication("failed_login", data.name, _client_ip(request), False, reason=e.message)
        raise BusinessError.from_domain(e)
    except PharmacyError as e:
        raise BusinessError.from_domain(e)

    if legacy:
        AuditLog.log_security_event("legacy_password_login", vendor_id, "vendor has no stored password")
    AuditLog.log_authentication("login", vendor_id, _client_ip(request), True)
    return _issue_token(response, vendor_id)


@router.post("/logout")
def logout(request: Request, response: Response, session: VendorSession = Depends(get_vendor_session)):
    """Clear the cookie and drop the cart and assistant conversation."""
    try:
        end_session(session)
    except PharmacyError as e:
        raise BusinessError.from_domain(e)

    response.delete_cookie(
        key=settings.AUTH_COOKIE_NAME,
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite=settings.SAME_SITE_COOKIE,
    )
    AuditLog.log_authentication("logout", session.vendor_id, _client_ip(request), True)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=VendorResponse)
def me(session: VendorSession = Depends(get_vendor_session)):
    return VendorResponse(id=session.vendor_id)
