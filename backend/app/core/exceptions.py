"""
Domain errors and their safe HTTP translation.

Services raise the domain exceptions below. Routes catch them where the
action started and convert them with BusinessError.from_domain, so the
user sees a short message while details go to the log.
"""
from fastapi import HTTPException, status
import logging

logger = logging.getLogger(__name__)


class PharmacyError(Exception):
    """Base exception for all store/domain failures."""

    default_message = "Something went wrong"

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class NotFound(PharmacyError):
    """Vendor, product, transaction or cart line lookup missed."""
    default_message = "Not found"


class AlreadyExists(PharmacyError):
    """Duplicate registration."""
    default_message = "Already exists"


class WrongPassword(PharmacyError):
    default_message = "Incorrect Password"


class PersistenceError(PharmacyError):
    """Generic store failure. The message is shown to the user."""
    default_message = "Database Connection Error"


class ValidationError(PharmacyError):
    """Empty remark, empty cart, missing required fields."""
    default_message = "Invalid input"


class ExternalServiceError(PharmacyError):
    """AI call failed or the credential is missing."""
    default_message = "The AI service is unavailable"


class ParseError(PharmacyError):
    """The model returned a malformed structured block."""
    default_message = "The data format was incorrect"


class ExchangeInFlight(PharmacyError):
    """A second assistant message arrived before the first was answered."""
    default_message = "The assistant is still answering the previous message"


class BusinessError:
    """HTTP exceptions with safe (non-leaky) messages."""

    @staticmethod
    def not_found(resource: str = "Resource", reason: str = "") -> HTTPException:
        if reason:
            logger.warning(f"Not found: {resource} - {reason}")
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found",
        )

    @staticmethod
    def unauthorized(detail: str = "Authentication failed", reason: str = "") -> HTTPException:
        logger.warning(f"Unauthorized access attempt: {reason or detail}")
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @staticmethod
    def bad_request(detail: str) -> HTTPException:
        """
        400 for input validation / business logic errors.

        OK to include specific details here since user caused the issue.
        """
        logger.info(f"Bad request: {detail}")
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )

    @staticmethod
    def conflict(detail: str) -> HTTPException:
        logger.info(f"Conflict: {detail}")
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )

    @staticmethod
    def unprocessable(detail: str) -> HTTPException:
        logger.info(f"Unprocessable: {detail}")
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
        )

    @staticmethod
    def bad_gateway(detail: str) -> HTTPException:
        logger.warning(f"Upstream failure: {detail}")
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=detail,
        )

    @staticmethod
    def server_error(detail: str = "An internal error occurred. Please try again later.") -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
        )

    @staticmethod
    def from_domain(error: PharmacyError) -> HTTPException:
        """Map a domain exception onto the matching HTTP response."""
        if isinstance(error, NotFound):
            return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.message)
        if isinstance(error, (AlreadyExists, ExchangeInFlight)):
            return BusinessError.conflict(error.message)
        if isinstance(error, WrongPassword):
            return BusinessError.unauthorized(error.message)
        if isinstance(error, ValidationError):
            return BusinessError.bad_request(error.message)
        if isinstance(error, ParseError):
            return BusinessError.unprocessable(error.message)
        if isinstance(error, ExternalServiceError):
            return BusinessError.bad_gateway(error.message)
        if isinstance(error, PersistenceError):
            return BusinessError.server_error(error.message)
        logger.error(f"Unhandled domain error: {type(error).__name__}: {error}")
        return BusinessError.server_error()
