"""
Error types for Sakura DNS Webhook.
"""


class WebhookError(Exception):
    """
    Base class for all errors raised by the webhook.
    """


class ValidationError(WebhookError):
    """
    Raised for malformed input: a missing endpoint or an unparsable payload.
    """


class NotFoundError(WebhookError):
    """
    Raised when the configured zone does not exist in the zone store.
    """


class RemoteError(WebhookError):
    """
    Raised when reading or writing the zone store fails, including timeouts.
    """


class ConflictError(RemoteError):
    """
    Raised when the zone store rejects a write because the zone changed
    since it was read.
    """
