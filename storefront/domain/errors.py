# storefront/domain/errors.py
"""
Bledy domenowe. Kazdy niesie status HTTP, router/handler zamienia je
na {"ok": false, "error": "..."}.
"""


class StorefrontError(Exception):
    status_code = 400

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(StorefrontError, ValueError):
    status_code = 422


class AuthorizationError(StorefrontError, PermissionError):
    status_code = 401


class NotFoundError(StorefrontError, LookupError):
    status_code = 404


class ConflictError(StorefrontError):
    status_code = 409


class PaymentProviderError(StorefrontError, RuntimeError):
    status_code = 502


class PaymentVerificationError(PaymentProviderError):
    status_code = 400


class UpstreamError(StorefrontError, RuntimeError):
    status_code = 502
