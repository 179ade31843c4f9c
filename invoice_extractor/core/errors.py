"""
Error taxonomy for the extraction pipeline.

Every error carries a machine-readable ``kind`` tag, a human-readable
message and the HTTP status the API layer reports it with. Errors are
raised where they occur and propagate unchanged to the caller; the API
exception handler is the only place they are turned into responses.
"""

from typing import Optional


class AppError(Exception):
    kind = "app_error"
    status_code = 500

    def __init__(self, message: str, details: Optional[list[dict]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or []

    def to_dict(self) -> dict:
        body = {"success": False, "error": self.message, "kind": self.kind}
        if self.details:
            body["details"] = self.details
        return body


class NotFoundError(AppError):
    """Referenced invoice does not exist."""
    kind = "not_found"
    status_code = 404

    def __init__(self, message: str = "Resource not found", details: Optional[list[dict]] = None):
        super().__init__(message, details)


class ValidationError(AppError):
    """Malformed caller input, or a model reply that violates the invoice schema."""
    kind = "validation_error"
    status_code = 400

    @property
    def fields(self) -> list[str]:
        return [d["field"] for d in self.details if "field" in d]


class FileUploadError(AppError):
    """Upload rejected at the boundary (media type, extension or size)."""
    kind = "file_upload_error"
    status_code = 400

    def __init__(self, message: str, details: Optional[list[dict]] = None):
        super().__init__(f"File Upload Error: {message}", details)


class ProviderConfigurationError(AppError):
    """Unknown provider name, or the selected provider lacks credentials."""
    kind = "provider_configuration_error"
    status_code = 500


class ExtractionError(AppError):
    """Provider call failed or the document yielded no usable text."""
    kind = "extraction_error"
    status_code = 502

    def __init__(self, message: str, details: Optional[list[dict]] = None):
        super().__init__(f"LLM Error: {message}", details)


class ParseError(AppError):
    """Provider reply contained no JSON object, or malformed JSON."""
    kind = "parse_error"
    status_code = 502
