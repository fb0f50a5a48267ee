"""Custom exceptions for the contract diff engine."""


class ContractDiffError(Exception):
    """Base exception for contract diff errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DocumentUnparseable(ContractDiffError):
    """Raised when a document cannot be parsed into a Document graph."""

    def __init__(self, source: str, reason: str | None = None):
        message = f"Could not parse the {source} contract"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.source = source
        self.reason = reason


class RetrievalFailure(ContractDiffError):
    """Raised when a document's URL or file cannot be read."""

    def __init__(self, location: str, reason: str | None = None):
        message = f"Could not retrieve {location}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.location = location
        self.reason = reason


class ConfigurationError(ContractDiffError):
    """Raised when settings taken from the environment are invalid."""
