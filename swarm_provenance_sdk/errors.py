"""
Exceptions raised by the provenance SDK.

Every error carries an optional machine-readable ``code``. Connection errors
also carry the HTTP ``status_code`` when the gateway answered at all.
"""
from typing import Optional


class ProvenanceError(Exception):
    """Base exception for all SDK errors."""

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code
        super().__init__(message)


class GatewayConnectionError(ProvenanceError):
    """Timeout, network failure or an unclassified non-2xx gateway response."""

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None):
        self.status_code = status_code
        super().__init__(message, code)


class StampError(ProvenanceError):
    """Raised when a postage stamp cannot be acquired from the pool."""
    pass


class NotaryError(ProvenanceError):
    """Raised when a notary-signed upload fails."""

    def __init__(self, message: str, code: Optional[str] = None, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message, code)


class VerificationError(ProvenanceError):
    """Raised by signature verification paths that cannot complete."""
    pass


class MetadataParseError(ValueError):
    """Raised when a JSON document is not valid provenance metadata."""
    pass
