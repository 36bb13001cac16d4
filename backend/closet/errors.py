"""Error kinds raised by the catalog services."""


class ClosetError(Exception):
    """Base class for every error surfaced to catalog callers."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ClosetError):
    """A required field is missing or malformed."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class NotFound(ClosetError):
    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class DuplicateKey(ClosetError):
    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} already exists: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class UnsupportedMediaType(ClosetError):
    def __init__(self, content_type: str):
        super().__init__(
            f"Unsupported image type {content_type!r}. Upload a JPEG, PNG, WebP, or GIF image."
        )
        self.content_type = content_type


class PayloadTooLarge(ClosetError):
    def __init__(self, size: int, limit: int):
        super().__init__(f"Image is {size} bytes; the limit is {limit} bytes.")
        self.size = size
        self.limit = limit


class StorageUnavailable(ClosetError):
    """The database or upload storage cannot be opened or accessed."""


class AIUnavailable(ClosetError):
    """No AI endpoint is configured or every endpoint failed."""


class SuggestionRejected(ClosetError):
    """The AI response could not be parsed as the expected shape."""

    def __init__(self, message: str, raw: str | None = None):
        super().__init__(message)
        self.raw = raw
