"""
Error taxonomy for the conversion service.

Every failure that reaches the HTTP boundary is one of these, and the
exception handler in app.py turns it into a JSON body with an ``error``
string and the status code carried by the class.
"""

from typing import Any, Dict, Optional


class BridgeError(Exception):
    """Base class for all service errors."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationError(BridgeError):
    """Bad or missing input (no file, no URL)."""
    status_code = 400


class EmptyInputError(ValidationError):
    """Zero-length image input."""


class PayloadTooLargeError(ValidationError):
    status_code = 413


class ConfigError(BridgeError):
    """Credential or repository identity is not configured."""
    status_code = 500


class AuthError(BridgeError):
    """The store rejected the credential."""
    status_code = 500


class ForbiddenError(AuthError):
    """The credential lacks the scope needed for the operation."""


class NotFoundError(BridgeError):
    status_code = 404


class ConflictError(BridgeError):
    """A write or delete carried a stale content hash."""
    status_code = 500


class DecodeError(BridgeError):
    """Input bytes are not a raster image."""
    status_code = 500


class TransientError(BridgeError):
    """Network failure, timeout or rate limiting. Retryable by the caller."""
    status_code = 500


class PublishError(BridgeError):
    """
    The original image was archived but publishing the drawing failed.

    The archive entry is kept; callers can retry the publish with
    /use-image and the archived image's raw URL.
    """
    status_code = 500

    def __init__(self, message: str, image: Optional[Dict[str, Any]] = None, cause: Optional[BridgeError] = None):
        super().__init__(message)
        self.image = image
        self.cause = cause
        if cause is not None:
            self.status_code = cause.status_code

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message, "recoverable": True}
        if self.image is not None:
            body["image"] = self.image
        return body
