"""
Exception hierarchy for LearnSphere.

Every domain error carries:
- message: human-readable description, safe to show to the user
- error_code: machine-readable string (e.g. "INSUFFICIENT_CREDITS")
- status_code: HTTP status code
- is_operational: expected failure whose message is returned as-is
- context: optional structured metadata dict
"""

from typing import Optional, Dict, Any


class LearnSphereError(Exception):
    """Base exception for all LearnSphere domain errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        context: Optional[Dict[str, Any]] = None,
        is_operational: bool = True,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.context = context or {}
        self.is_operational = is_operational
        super().__init__(message)


class AuthenticationError(LearnSphereError):
    """Missing, invalid or expired credentials."""

    def __init__(self, message: str = "Not authorized, no token", context: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="AUTHENTICATION_FAILED", status_code=401, context=context)


class AuthorizationError(LearnSphereError):
    """Authenticated but not allowed to perform the action."""

    def __init__(self, message: str = "Not authorized to perform this action", context: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="NOT_AUTHORIZED", status_code=403, context=context)


class ValidationError(LearnSphereError):
    """400-level validation / bad-request errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "VALIDATION_FAILED",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=400, context=context)


class NotFoundError(LearnSphereError):
    """404 resource-not-found errors."""

    def __init__(self, message: str = "Resource not found", context: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="NOT_FOUND", status_code=404, context=context)


class InsufficientCreditsError(LearnSphereError):
    """User cannot afford the requested AI processing."""

    def __init__(self, required: int, available: int):
        super().__init__(
            f"Insufficient credits: {required} required, {available} available. "
            "Please upgrade your plan.",
            error_code="INSUFFICIENT_CREDITS",
            status_code=402,
            context={"required": required, "available": available},
        )


class GenerationInProgressError(LearnSphereError):
    """Another request is already building this artifact."""

    def __init__(self, document_id: str, artifact_type: str):
        super().__init__(
            f"A {artifact_type} generation for this document is already in progress",
            error_code="GENERATION_IN_PROGRESS",
            status_code=409,
            context={"document_id": document_id, "artifact_type": artifact_type},
        )


class ExtractionFailedError(LearnSphereError):
    """PDF text extraction failed."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="EXTRACTION_FAILED", status_code=422, context=context)


class ExternalServiceError(LearnSphereError):
    """The language model call failed (network, quota, key)."""

    def __init__(
        self,
        message: str,
        error_code: str = "EXTERNAL_SERVICE_ERROR",
        status_code: int = 502,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=status_code, context=context)


class GenerationFailedError(ExternalServiceError):
    """The model answered but the response could not be used."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="GENERATION_FAILED", context=context)
