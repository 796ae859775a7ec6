"""Custom exception hierarchy for the caddy intent pipeline."""


class CaddyError(Exception):
    """Base error."""
    def __init__(self, message: str, code: str = "CADDY_ERROR", recoverable: bool = False):
        self.message = message
        self.code = code
        self.recoverable = recoverable
        super().__init__(message)


class InputEmptyError(CaddyError):
    """Blank or whitespace-only input; no model call is made."""
    def __init__(self, message: str = "say or type something"):
        super().__init__(message, code="INPUT_EMPTY")


class ClassificationTimeoutError(CaddyError):
    """Model call exceeded the classifier timeout."""
    def __init__(self, message: str = "Classification timed out"):
        super().__init__(message, code="CLASSIFICATION_TIMEOUT", recoverable=True)


class ClassificationNetworkError(CaddyError):
    """Transport failure talking to the language model."""
    def __init__(self, message: str = "Classification network failure"):
        super().__init__(message, code="CLASSIFICATION_NETWORK_FAILURE", recoverable=True)


class ServiceUnavailableError(CaddyError):
    """Model service reachable but refusing work (5xx / rate limited)."""
    def __init__(self, message: str = "Classification service unavailable"):
        super().__init__(message, code="SERVICE_UNAVAILABLE", recoverable=True)


class InvalidModelResponseError(CaddyError):
    """Model reply failed schema validation. Never guessed around."""
    def __init__(self, message: str = "Invalid model response"):
        super().__init__(message, code="INVALID_MODEL_RESPONSE", recoverable=True)


class ClassificationCancelledError(CaddyError):
    """In-flight classification superseded by newer input."""
    def __init__(self, message: str = "Classification cancelled"):
        super().__init__(message, code="CLASSIFICATION_CANCELLED")


class NoActiveSessionError(CaddyError):
    """A downstream action needed round context that is absent."""
    def __init__(self, message: str = "No active round"):
        super().__init__(message, code="NO_ACTIVE_SESSION", recoverable=True)


class NoPendingConfirmationError(CaddyError):
    """A yes/no answer arrived with no confirmation outstanding."""
    def __init__(self, message: str = "No confirmation pending"):
        super().__init__(message, code="NO_PENDING_CONFIRMATION")
