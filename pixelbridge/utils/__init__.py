"""
Utility modules for the Pixel Bridge service.
"""

from .audit_log import AuditLogger, log_store_write, log_store_delete, log_conversion

__all__ = [
    "AuditLogger",
    "log_store_write",
    "log_store_delete",
    "log_conversion"
]
