"""Exception hierarchy for the dump analyzer."""


class RCAnalyzerError(Exception):
    """Base exception for all analyzer errors."""

    def __init__(self, message: str, details: dict[str, str] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigurationError(RCAnalyzerError):
    """Rule configuration could not be loaded or compiled."""


class MalformedInputError(RCAnalyzerError):
    """A dump file is present but unreadable or of an unknown shape."""
