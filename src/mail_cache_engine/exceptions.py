"""Custom exceptions for the mail cache engine."""


class MailCacheError(Exception):
    """Base exception for all mail cache engine errors."""


class MissingParameterError(MailCacheError):
    """Exception raised when a required input is absent."""


class InvalidParameterError(MissingParameterError):
    """Exception raised when an input is present but malformed."""


class NotFoundError(MailCacheError):
    """Exception raised when a message, index or account does not exist."""


class MalformedIdError(MailCacheError):
    """Exception raised when a composite message ID cannot be decomposed."""


class EnrichmentShapeError(MailCacheError):
    """Exception raised when a language model reply is not a valid enrichment."""


class ConfigurationError(MailCacheError):
    """Exception raised for configuration related errors."""


class RemoteProviderError(MailCacheError):
    """Exception raised when a call to a remote provider fails."""


class AuthenticationError(RemoteProviderError):
    """Exception raised for authentication failures."""


class GmailAPIError(RemoteProviderError):
    """Exception raised for Gmail API related errors."""


class OllamaConnectionError(RemoteProviderError):
    """Exception raised when unable to connect to Ollama."""


class OllamaInferenceError(RemoteProviderError):
    """Exception raised when Ollama inference fails."""
