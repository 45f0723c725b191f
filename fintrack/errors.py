"""Error taxonomy for fintrack.

Each error knows the HTTP status it maps to; the API layer turns them into
JSON bodies of the form ``{"error": ..., "details": ...}``.
"""

from datetime import datetime, timezone


class FintrackError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    error = "Internal error"

    def __init__(self, details: str | None = None):
        super().__init__(details or self.error)
        self.details = details

    def to_dict(self) -> dict:
        body: dict = {"error": self.error}
        if self.details:
            body["details"] = self.details
        return body


class AuthenticationError(FintrackError):
    """No authenticated user on the request."""

    status_code = 401
    error = "Unauthorized"


class InputValidationError(FintrackError):
    """The caller sent a missing file, a bad file type or bad field values."""

    status_code = 400

    def __init__(self, error: str, details: str | None = None):
        super().__init__(details or error)
        self.error = error
        self.details = details


class TransactionNotFoundError(FintrackError):
    """No transaction with this id belongs to the caller."""

    status_code = 404
    error = "Transaction not found"


class ConfigurationError(FintrackError):
    """The hosting environment is missing something the service needs."""

    error = "API configuration error"


class DocumentExtractionError(FintrackError):
    """Text could not be extracted from an uploaded document."""

    error = "Failed to extract text from document"


class ExternalServiceError(FintrackError):
    """The model service failed or returned something that is not JSON."""

    error = "AI processing failed"


class SchemaValidationError(FintrackError):
    """The model's JSON does not match the receipt extraction shape."""

    error = "AI processing failed"

    def __init__(self, details: str, fields: list[str] | None = None):
        super().__init__(details)
        self.fields = fields or []


class ReceiptProcessingError(FintrackError):
    """Unexpected failure at the receipt pipeline boundary."""

    error = "Failed to process receipt"

    def __init__(self, details: str | None = None):
        super().__init__(details or "Unknown error")
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["timestamp"] = self.timestamp
        return body
