"""Error types raised by the chart templating pipeline."""


class TemplateServiceError(Exception):
    """Base class for all pipeline errors. Carries the HTTP status to respond with."""
    status_code = 500


class InvalidRequest(TemplateServiceError):
    """Raised when client input is missing or malformed."""
    status_code = 400


class MethodNotAllowed(TemplateServiceError):
    """Raised for HTTP methods other than GET and POST."""
    status_code = 405


class RetrievalFailed(TemplateServiceError):
    """Raised when the chart archive cannot be downloaded."""


class StorageError(TemplateServiceError):
    """Raised when a scratch file or directory cannot be created, written or read."""


class ExtractionFailed(TemplateServiceError):
    """Raised when the chart archive cannot be unpacked safely."""


class ChartNotFound(TemplateServiceError):
    """Raised when the extracted archive has no usable chart directory."""


class RenderFailed(TemplateServiceError):
    """Raised when the render engine fails to load or template the chart."""
