"""
Audit logging for changes to the remote store.

Every write and delete against the repository, and the outcome of every
conversion, is logged here so the commit history can be matched to the
requests that caused it.
"""

import logging
from typing import Optional
from fastapi import Request

# Configure audit logger
audit_logger = logging.getLogger("audit")
audit_logger.setLevel(logging.INFO)

# Create handler if not already configured
if not audit_logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        '%(asctime)s - AUDIT - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    handler.setFormatter(formatter)
    audit_logger.addHandler(handler)


class AuditLogger:
    """
    Centralized audit logging for store mutations and conversions.
    """

    @staticmethod
    def get_client_ip(request: Optional[Request]) -> str:
        """Extract client IP from request."""
        if not request:
            return "unknown"

        # Check for forwarded IP (if behind proxy)
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()

        return request.client.host if request.client else "unknown"

    @staticmethod
    def log_store_write(
        path: str,
        message: str,
        previous_sha: Optional[str],
        new_sha: Optional[str],
        success: bool,
        details: Optional[str] = None
    ):
        """
        Log a create/replace of a file in the store.

        Args:
            path: Repository path written
            message: Commit message sent with the write
            previous_sha: Hash presented as the precondition (None for a create)
            new_sha: Hash assigned by the store on success
            success: Whether the store accepted the write
            details: Error text on failure
        """
        status = "SUCCESS" if success else "FAILURE"
        mode = "REPLACE" if previous_sha else "CREATE"

        entry = (
            f"STORE_WRITE | {mode} | {status} | path={path} | "
            f"sha={previous_sha or 'N/A'}->{new_sha or 'N/A'} | message={message}"
        )
        if details:
            entry += f" | details={details}"

        if success:
            audit_logger.info(entry)
        else:
            audit_logger.warning(entry)

    @staticmethod
    def log_store_delete(
        path: str,
        sha: Optional[str],
        success: bool,
        details: Optional[str] = None
    ):
        """Log removal of a file from the store."""
        status = "SUCCESS" if success else "FAILURE"
        entry = f"STORE_DELETE | {status} | path={path} | sha={sha or 'N/A'}"
        if details:
            entry += f" | details={details}"

        if success:
            audit_logger.info(entry)
        else:
            audit_logger.warning(entry)

    @staticmethod
    def log_conversion(
        source: str,
        filename: Optional[str],
        success: bool,
        total_pixels: Optional[int] = None,
        request: Optional[Request] = None,
        details: Optional[str] = None
    ):
        """
        Log the outcome of a conversion request.

        Args:
            source: "upload" or "url"
            filename: Display name of the image
            success: Whether the drawing was published
            total_pixels: Pixel count of the published drawing
            request: FastAPI request object for IP extraction
            details: Error text on failure
        """
        ip = AuditLogger.get_client_ip(request)
        status = "SUCCESS" if success else "FAILURE"

        entry = (
            f"CONVERSION | {source.upper()} | {status} | "
            f"filename={filename or 'N/A'} | pixels={total_pixels if total_pixels is not None else 'N/A'} | "
            f"ip={ip}"
        )
        if details:
            entry += f" | details={details}"

        if success:
            audit_logger.info(entry)
        else:
            audit_logger.warning(entry)


# Convenience functions
def log_store_write(
    path: str,
    message: str,
    previous_sha: Optional[str],
    new_sha: Optional[str],
    success: bool,
    details: Optional[str] = None
):
    """Convenience wrapper for AuditLogger.log_store_write."""
    AuditLogger.log_store_write(path, message, previous_sha, new_sha, success, details)


def log_store_delete(
    path: str,
    sha: Optional[str],
    success: bool,
    details: Optional[str] = None
):
    """Convenience wrapper for AuditLogger.log_store_delete."""
    AuditLogger.log_store_delete(path, sha, success, details)


def log_conversion(
    source: str,
    filename: Optional[str],
    success: bool,
    total_pixels: Optional[int] = None,
    request: Optional[Request] = None,
    details: Optional[str] = None
):
    """Convenience wrapper for AuditLogger.log_conversion."""
    AuditLogger.log_conversion(source, filename, success, total_pixels, request, details)
