"""
Audit logging for sign-in and store-changing operations.

Entries are JSON lines on the "audit" logger. Passwords and tokens are
never included.
"""
import logging
import json
from datetime import datetime, timezone
from typing import Any, Optional, Dict

audit_logger = logging.getLogger("audit")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuditLog:
    """Central audit logging for vendor sessions and stock/sales changes."""

    @staticmethod
    def log_authentication(
        action: str,  # "login", "logout", "register", "failed_login"
        vendor_id: str,
        ip_address: str,
        success: bool,
        reason: str = "",
    ):
        """
        Usage:
            AuditLog.log_authentication("login", "main_store", "192.168.1.1", True)
            AuditLog.log_authentication("failed_login", "main_store", "192.168.1.1", False, reason="Incorrect Password")
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"auth.{action}",
            "vendor_id": vendor_id,
            "ip_address": ip_address,
            "success": success,
        }

        if reason and not success:
            log_entry["reason"] = reason

        if success:
            audit_logger.info(json.dumps(log_entry))
        else:
            audit_logger.warning(json.dumps(log_entry))

    @staticmethod
    def log_action(
        action: str,  # "create", "update", "delete", "bulk_upsert", "checkout", "reset"
        resource_type: str,  # "product", "transaction"
        resource_id: Optional[str],
        vendor_id: str,
        changes: Optional[Dict[str, Any]] = None,
    ):
        """
        Usage:
            AuditLog.log_action("delete", "product", product_id, "main_store")
            AuditLog.log_action("reset", "transaction", None, "main_store", changes={"deleted": 12})
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"{resource_type}.{action}",
            "vendor_id": vendor_id,
            "resource_id": resource_id,
        }

        if changes:
            log_entry["changes"] = changes

        audit_logger.info(json.dumps(log_entry, default=str))

    @staticmethod
    def log_security_event(
        event_type: str,  # "legacy_password_login"
        vendor_id: str,
        details: Optional[str] = None,
    ):
        log_entry = {
            "timestamp": _now(),
            "event_type": f"security.{event_type}",
            "vendor_id": vendor_id,
        }

        if details:
            log_entry["details"] = details

        audit_logger.warning(json.dumps(log_entry))
