"""
Custom exceptions for jdkfetch.

This module defines domain-specific exceptions that provide better error
categorization and more informative error messages for users and developers.
"""

from typing import Dict, List, Optional, Tuple


class JdkFetchError(Exception):
    """
    Base exception for all jdkfetch errors.

    All custom exceptions in jdkfetch inherit from this class
    to allow for easy catching of all application-specific errors.
    """

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: The primary error message.
            details: Optional additional context about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(JdkFetchError):
    """
    Exception raised when configuration is invalid or missing.

    This includes:
    - Unknown configuration keys
    - Invalid configuration values
    - Configuration file parsing errors
    """

    pass


class ConfigFileError(ConfigurationError):
    """Exception raised when configuration file cannot be read."""

    pass


class ConfigValidationError(ConfigurationError):
    """Exception raised when configuration validation fails."""

    pass


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(JdkFetchError):
    """
    Exception raised when validation fails.

    Attributes:
        field: The name of the field that failed validation.
        value: The value that failed validation.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, details)
        self.field = field
        self.value = value


class VersionSpecError(ValidationError):
    """Exception raised when a version request cannot be parsed."""

    pass


class PlatformError(ValidationError):
    """Exception raised when a platform key is malformed."""

    pass


# =============================================================================
# Resolution Errors
# =============================================================================


class ResolveError(JdkFetchError):
    """Base exception for failures turning a version request into a release."""

    pass


class VersionNotFoundError(ResolveError):
    """
    Exception raised when no release in the catalog satisfies a request.

    Attributes:
        spec: The request that could not be satisfied.
        source: The catalog source that was searched, if known.
    """

    def __init__(
        self,
        message: str,
        spec: Optional[str] = None,
        source: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, details)
        self.spec = spec
        self.source = source


class NoCandidatesError(ResolveError):
    """Exception raised when a catalog holds no releases at all."""

    pass


class AllSourcesFailedError(ResolveError):
    """
    Exception raised when every source in the priority chain failed.

    Attributes:
        failures: Ordered (source, error) pairs, one per attempted source.
    """

    def __init__(
        self,
        message: str,
        failures: Optional[List[Tuple[str, Exception]]] = None,
    ) -> None:
        self.failures = list(failures or [])
        details = (
            "; ".join(f"{source}: {error}" for source, error in self.failures)
            or None
        )
        super().__init__(message, details)

    @property
    def last_error(self) -> Optional[Exception]:
        return self.failures[-1][1] if self.failures else None


class RegistryError(JdkFetchError):
    """
    Exception raised when the static version registry is unusable.

    Attributes:
        path: Registry file path, if one was located.
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, details)
        self.path = path


# =============================================================================
# Download Errors
# =============================================================================


class DownloadError(JdkFetchError):
    """
    Base exception for download-related errors.

    Attributes:
        url: The URL that was being downloaded when the error occurred.
        retry_count: Number of attempts made before failure.
        is_retryable: Whether the error could be retried.
        destination: Caller-visible destination path, if any.
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        retry_count: int = 0,
        is_retryable: bool = False,
        details: Optional[str] = None,
        destination: Optional[str] = None,
    ) -> None:
        super().__init__(message, details)
        self.url = url
        self.retry_count = retry_count
        self.is_retryable = is_retryable
        self.destination = destination

    def __str__(self) -> str:
        text = super().__str__()
        context = []
        if self.url:
            context.append(f"url={self.url}")
        if self.retry_count:
            context.append(f"attempts={self.retry_count}")
        if self.destination:
            context.append(f"destination={self.destination}")
        if context:
            return f"{text} ({', '.join(context)})"
        return text


class NetworkError(DownloadError):
    """
    Exception raised for network-related failures.

    This includes:
    - Connection timeouts
    - DNS resolution failures
    - Connection resets
    - SSL/TLS errors
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        retry_count: int = 0,
        is_retryable: bool = True,
        details: Optional[str] = None,
        destination: Optional[str] = None,
    ) -> None:
        super().__init__(message, url, retry_count, is_retryable, details, destination)


class CatalogFetchError(NetworkError):
    """
    Exception raised when a catalog provider cannot reach its origin.

    Attributes:
        source: Name of the provider whose origin was unreachable.
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        url: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, url=url, details=details)
        self.source = source


class HTTPError(DownloadError):
    """
    Exception raised for HTTP-related download failures.

    Attributes:
        status_code: The HTTP status code returned by the server.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
        retry_count: int = 0,
        is_retryable: bool = False,
        details: Optional[str] = None,
        destination: Optional[str] = None,
    ) -> None:
        super().__init__(message, url, retry_count, is_retryable, details, destination)
        self.status_code = status_code


class ResourceNotFoundError(HTTPError):
    """Exception raised when the server reports the artifact does not exist."""

    pass


class ChecksumMismatchError(DownloadError):
    """
    Exception raised when a payload fails SHA-256 verification.

    Attributes:
        expected: The expected hex digest.
        actual: The digest computed over the received payload.
    """

    def __init__(
        self,
        message: str,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
        url: Optional[str] = None,
        retry_count: int = 0,
        destination: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            url=url,
            retry_count=retry_count,
            is_retryable=True,
            details=f"expected {expected}, got {actual}",
            destination=destination,
        )
        self.expected = expected
        self.actual = actual


class DownloadIOError(DownloadError):
    """Exception raised when the local filesystem rejects a download write."""

    pass


class DownloadCancelledError(DownloadError):
    """Exception raised when a caller cancels an in-flight download."""

    pass


class DownloadInProgressError(DownloadError):
    """Exception raised when another process is writing the same destination."""

    pass


class NoAvailableSourceError(DownloadError):
    """
    Exception raised when no usable URL exists for the requested platform.

    Attributes:
        platform_key: The requested `{os}-{arch}` key.
        available: Platform keys the release does offer.
    """

    def __init__(
        self,
        message: str,
        platform_key: Optional[str] = None,
        available: Optional[List[str]] = None,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(message, url=url)
        self.platform_key = platform_key
        self.available = list(available or [])


def describe_failures(failures: Dict[str, Exception]) -> str:
    """Render per-source failures as one line per source for user-facing output."""
    return "\n".join(f"  {source}: {error}" for source, error in failures.items())
