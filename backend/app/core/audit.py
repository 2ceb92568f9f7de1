"""
Audit logging for changes to business records.

Every create/update/delete of a stored record and every stock movement
(sale, purchase-order receipt) is written as one JSON line on the `audit`
logger, so it can be shipped separately from application logs.
"""
import logging
import json
from datetime import datetime, timezone
from typing import Any, Optional, Dict

audit_logger = logging.getLogger("audit")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuditLog:
    """Central audit logging for record changes."""

    @staticmethod
    def log_action(
        action: str,  # "create", "update", "delete", "receive", "status"
        resource_type: str,  # "medicine", "sale", "purchase_order", ...
        resource_id: int,
        changes: Optional[Dict[str, Any]] = None,
    ):
        """
        Log a change to a stored record.

        Usage:
            AuditLog.log_action("create", "medicine", 12, changes={"name": "Paracetamol"})
            AuditLog.log_action("delete", "cost", 7)
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"{resource_type}.{action}",
            "resource_id": resource_id,
        }

        if changes:
            log_entry["changes"] = changes

        audit_logger.info(json.dumps(log_entry, default=str))

    @staticmethod
    def log_stock_movement(
        medicine_id: int,
        delta: int,
        quantity_after: int,
        reason: str,  # "sale", "purchase_order"
        reference: str,
    ):
        """
        Log a quantity change caused by another record.

        Usage:
            AuditLog.log_stock_movement(3, -2, 8, "sale", "S-20250101-1234")
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": "stock.movement",
            "medicine_id": medicine_id,
            "delta": delta,
            "quantity_after": quantity_after,
            "reason": reason,
            "reference": reference,
        }

        audit_logger.info(json.dumps(log_entry))
