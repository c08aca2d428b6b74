"""
Error taxonomy for the book summary service.

Every error raised on purpose by the service derives from
``BookSummaryError``. Each carries the wording of the notification a
client shows to the user (``title``/``description``), whether offering a
retry makes sense, and the HTTP status used when the error reaches the
API edge. ``main.create_app`` installs a single handler that turns these
into ``{"detail": {...}}`` JSON responses.
"""

from typing import Any, Dict, Optional


class BookSummaryError(Exception):
    status_code: int = 500
    title: str = "Something went wrong"
    retry: bool = False

    def __init__(self, description: str = "", *, title: Optional[str] = None) -> None:
        super().__init__(description or self.title)
        self.description = description or self.title
        if title is not None:
            self.title = title

    def to_notification(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "retry": self.retry,
        }


class StorageError(BookSummaryError):
    status_code = 500
    title = "Storage error"
    retry = True


class FetchError(BookSummaryError):
    """Non-2xx response or network failure from an external API."""

    status_code = 502
    title = "Error loading books"
    retry = True

    def __init__(self, status_text: str, upstream_status: Optional[int] = None) -> None:
        super().__init__(status_text)
        self.status_text = status_text
        self.upstream_status = upstream_status


class NotFound(BookSummaryError):
    status_code = 404
    title = "Not found"


class ExternalBookError(BookSummaryError):
    status_code = 400
    title = "Cannot modify external book"


class AlreadyImported(BookSummaryError):
    status_code = 409
    title = "Book already in catalogue"


class InvalidCredentials(BookSummaryError):
    status_code = 401
    title = "Login failed"

    def __init__(self, description: str = "Invalid email or password") -> None:
        super().__init__(description)


class EmailAlreadyRegistered(BookSummaryError):
    status_code = 409
    title = "Registration failed"

    def __init__(self, description: str = "Email already registered") -> None:
        super().__init__(description)


class NotAuthenticated(BookSummaryError):
    status_code = 401
    title = "Login required"

    def __init__(self, description: str = "No authenticated user") -> None:
        super().__init__(description)


class AccessDenied(BookSummaryError):
    """Raised by route guards; ``redirect_to`` is where the client should go."""

    def __init__(self, title: str, description: str, redirect_to: str) -> None:
        super().__init__(description, title=title)
        self.redirect_to = redirect_to
        self.status_code = 401 if redirect_to == "/login" else 403

    def to_notification(self) -> Dict[str, Any]:
        payload = super().to_notification()
        payload["redirect_to"] = self.redirect_to
        return payload


class StaleResponseError(BookSummaryError):
    status_code = 409
    title = "Request superseded"

    def __init__(self, description: str = "A newer request replaced this one") -> None:
        super().__init__(description)


class MissingApiKey(BookSummaryError):
    status_code = 400
    title = "API key required"

    def __init__(self, description: str = "API key not set. Please set an API key first.") -> None:
        super().__init__(description)


class InvalidApiKeyFormat(BookSummaryError):
    status_code = 400
    title = "Invalid API key"

    def __init__(self, description: str = "Invalid API key format. Please check your API key.") -> None:
        super().__init__(description)


class ProviderError(BookSummaryError):
    status_code = 502
    title = "Summary generation failed"
    retry = True

    def __init__(self, code: int, message: str) -> None:
        self.code = code
        self.message = message
        if code == 400:
            text = f"API Error (400): {message}. This could be due to an invalid API key."
        elif code == 403:
            text = (
                f"API Error (403): {message}. Access denied - please check if "
                "your API key has the correct permissions."
            )
        elif code == 429:
            text = f"API Error (429): {message}. Rate limit exceeded - please try again later."
        else:
            text = f"API Error ({code}): {message}"
        super().__init__(text)


class EmptyGeneration(BookSummaryError):
    status_code = 502
    title = "Summary generation failed"
    retry = True

    def __init__(
        self, description: str = "No summary was generated. The API returned an empty response."
    ) -> None:
        super().__init__(description)
