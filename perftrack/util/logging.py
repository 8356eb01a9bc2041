"""
Structured operation logging shared by the store, DAO and API layers.
"""

import logging
import os
from typing import Any, Dict, List


class StructuredLogger:
    """Structured logger for store reads, writes and access decisions."""

    def __init__(self, name: str = "perftrack"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        if status in ("failed", "error"):
            self.logger.error(message)
        elif status in ("denied", "rejected"):
            self.logger.warning(message)
        else:
            self.logger.info(message)

    def log_store_read(self, table: str, row_count: int, filters: Dict[str, Any] = None, status: str = "success"):
        """Log a row store query."""
        details = {"table": table, "rows": row_count}
        if filters:
            details["filters"] = filters
        self.log_operation(f"store.read.{table}", status, details)

    def log_store_write(self, table: str, action: str, row_id: str = None, status: str = "success", error: str = None):
        """Log a single-row write (insert, update, upsert, delete)."""
        details = {"table": table, "action": action}
        if row_id is not None:
            details["row_id"] = row_id
        if error:
            details["error"] = error[:200]
        self.log_operation(f"store.{action}.{table}", status, details)

    def log_access_denied(self, actor_id: str, capability: str, resource: str = None):
        """Log a capability check that failed."""
        details = {"actor_id": actor_id, "capability": capability}
        if resource:
            details["resource"] = resource
        self.log_operation("access.check", "denied", details)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


# Global logger instance
logger = StructuredLogger()


def audit_event(event_type: str, identifiers: Dict[str, Any], payload: Dict[str, Any] = None, sensitive_fields: List[str] = None):
    """Audit a user-initiated change with free text and contact fields redacted."""
    if sensitive_fields is None:
        sensitive_fields = ['notes', 'email', 'candidate_name']

    log_details = identifiers.copy() if identifiers else {}

    if payload:
        log_details["payload"] = sanitize_payload(payload, sensitive_fields=sensitive_fields)

    logger.log_operation(event_type, "audit", log_details)


def sanitize_payload(payload: Any, reveal_sensitive: bool = False, sensitive_fields: List[str] = None) -> Any:
    """Sanitize payloads for audit logging."""
    if sensitive_fields is None:
        sensitive_fields = ['notes', 'email', 'candidate_name']

    if isinstance(payload, dict):
        sanitized = {}
        for k, v in payload.items():
            if reveal_sensitive or k not in sensitive_fields:
                sanitized[k] = sanitize_payload(v, reveal_sensitive, sensitive_fields)
            else:
                sanitized[k] = "[REDACTED]"
        return sanitized
    elif isinstance(payload, str):
        # Truncate long strings
        return payload[:100] + "..." if len(payload) > 100 else payload
    elif isinstance(payload, list):
        return [sanitize_payload(item, reveal_sensitive, sensitive_fields) for item in payload]
    else:
        return payload
