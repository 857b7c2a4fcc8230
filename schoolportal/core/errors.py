"""
Domain errors raised by the service layer.

Each error carries the HTTP status it is reported with; the handlers in
``schoolportal.main`` turn them into JSON responses. Nothing here is fatal:
a failure is scoped to the single request that raised it.
"""
from typing import Any, Dict, Optional


class PortalError(Exception):
    status_code = 500
    code = "internal_error"

    def __init__(self, detail: str, extra: Optional[Dict[str, Any]] = None):
        super().__init__(detail)
        self.detail = detail
        self.extra = extra or {}

    def to_dict(self) -> Dict[str, Any]:
        body = {"error": self.code, "detail": self.detail}
        body.update(self.extra)
        return body


class ValidationError(PortalError):
    """Missing field, malformed date, out-of-range grade."""
    status_code = 422
    code = "validation_error"


class NotFoundError(PortalError):
    status_code = 404
    code = "not_found"


class PermissionDeniedError(PortalError):
    status_code = 403
    code = "forbidden"


class ConflictError(PortalError):
    """The requested transition is not allowed from the current state."""
    status_code = 409
    code = "conflict"


class UploadError(PortalError):
    status_code = 502
    code = "upload_failed"


class StoreError(PortalError):
    status_code = 502
    code = "store_error"


class ProviderError(PortalError):
    """Transient calendar provider failure. The caller may retry."""
    status_code = 502
    code = "provider_error"

    def __init__(self, detail: str, extra: Optional[Dict[str, Any]] = None):
        super().__init__(detail, {"retry": True, **(extra or {})})


class ProviderAuthError(PortalError):
    """Calendar credential expired or invalid. The caller must re-authenticate."""
    status_code = 401
    code = "provider_auth_failed"

    def __init__(self, detail: str, extra: Optional[Dict[str, Any]] = None):
        super().__init__(detail, {"reauthenticate": True, **(extra or {})})
