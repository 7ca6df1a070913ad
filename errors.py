# ------------------------------------------------------------
# errors.py
#
# Exceptions raised by the provider lookup pipeline.
#
#   - MissingCredential: no usable API key (configuration problem)
#   - NetworkError: the request never got a response
#   - ProviderError: the provider answered with an error
#   - Cancelled: the caller cancelled the search
#   - GeocodingError: a city/district could not be resolved
#
# An empty result is not an error: searches simply return no providers.
# ------------------------------------------------------------

from typing import Optional


class CareSearchError(Exception):
    """Base class for every error raised by the lookup pipeline."""


class MissingCredential(CareSearchError):
    """Raised when an API key is absent or still the placeholder value."""

    def __init__(self, service: str = "Google Places"):
        self.service = service
        super().__init__(f"{service} API key is not set.")


class NetworkError(CareSearchError):
    """Transport-level failure (DNS, connection reset, timeout...)."""


class ProviderError(CareSearchError):
    """
    The external provider returned a non-success response.

    status_code is the HTTP status when there was one; message is the
    provider's own error text when its payload carried one.
    """

    def __init__(self, status_code: Optional[int] = None, message: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        if message:
            text = f"Provider error: {message}"
        elif status_code is not None:
            text = f"Provider returned HTTP {status_code}"
        else:
            text = "Provider returned an invalid response"
        super().__init__(text)


class Cancelled(CareSearchError):
    """The caller cancelled the search before its result was used."""


class GeocodingError(CareSearchError):
    """Custom exception for geocoding-related failures."""
    pass


def user_message(error: Exception) -> str:
    """Render an error the way it should be shown to an end user."""
    if isinstance(error, MissingCredential):
        return f"{error.service} API key is missing. Add it to your .env file."
    if isinstance(error, ProviderError):
        if error.message:
            return f"Search service error: {error.message}"
        if error.status_code is not None:
            return f"Search service error (HTTP {error.status_code})."
        return "Search service returned an invalid response."
    if isinstance(error, NetworkError):
        return "Network error. Check your internet connection and try again."
    if isinstance(error, Cancelled):
        return "Search cancelled."
    return str(error) or "Unknown error"
