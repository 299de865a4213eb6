from pydantic import BaseModel, Field, ValidationError
from typing import Any, Optional, List, Dict

class ProvenanceMetadata(BaseModel):
    """
     Defines the structure for the metadata JSON that wraps
     the base64-encoded provenance data.
    """
    data: str = Field(description="Base64 encoded string of the original provenance file content.")
    content_hash: str = Field(description="SHA256 hash of the original, raw provenance file content.")
    stamp_id: str = Field(description="Swarm Postage Stamp ID used for this upload.")
    provenance_standard: Optional[str] = Field(default=None, description="Identifier for the provenance standard used (e.g., 'PROV-O').")
    encryption: Optional[str] = Field(default=None, description="Details about encryption scheme, if any, used on ORIGINAL data.")

    def to_dict(self) -> dict:
        """Wire form: unset optional fields are omitted, never sent as null."""
        return self.model_dump(exclude_none=True)


# --- Notary Models ---

class NotarySignature(BaseModel):
    """An attestation by the notary over a subset of metadata fields."""
    type: str = Field(description="Signature scheme tag (e.g., 'eip191').")
    signer: str = Field(description="Claimed address of the signer.")
    timestamp: str = Field(description="ISO 8601 instant of signing.")
    data_hash: str = Field(description="SHA256 hex digest over the canonical view of hashed_fields.")
    signature: str = Field(description="Signature bytes as returned by the notary. Not cryptographically checked.")
    hashed_fields: List[str] = Field(default_factory=list, description="Metadata fields included in data_hash, in order.")
    signed_message_format: str = Field(default="", description="Template with {data_hash} and {timestamp} placeholders.")


class SignedDocument(BaseModel):
    """Provenance metadata together with the notary signatures over it."""
    metadata: ProvenanceMetadata
    signatures: List[NotarySignature] = Field(default_factory=list)


class SignatureVerification(BaseModel):
    """Outcome of checking a single notary signature."""
    valid: bool
    data_hash_valid: bool
    signer_valid: Optional[bool] = Field(default=None, description="None when no expected signer was supplied.")
    error: Optional[str] = None

    @property
    def hash_only(self) -> bool:
        """True when only the data hash was checked and the signer was never compared."""
        return self.valid and self.signer_valid is None


class SignatureCheck(BaseModel):
    index: int
    valid: bool
    error: Optional[str] = None


class VerificationReport(BaseModel):
    all_valid: bool
    results: List[SignatureCheck] = Field(default_factory=list)


# --- Gateway API Response Models ---

class NotaryInfo(BaseModel):
    """Notary service status advertised by the gateway."""
    enabled: bool = Field(description="Whether the notary service is enabled on the gateway.")
    available: bool = Field(description="Whether the notary service is configured and reachable.")
    address: Optional[str] = Field(default=None, description="Notary signer address, if available.")
    message: Optional[str] = Field(default=None, description="Optional status message.")


class PoolStatus(BaseModel):
    """Stamp pool status; counts are keyed by stamp depth."""
    enabled: bool
    available: Dict[str, int] = Field(default_factory=dict)
    reserve: Dict[str, int] = Field(default_factory=dict)


class AcquiredStamp(BaseModel):
    """A stamp handed out by the gateway's pool."""
    batch_id: str = Field(description="The batch ID (stamp ID).")
    depth: int = Field(description="Stamp depth.")
    size_name: str = Field(description="Size preset name (small, medium, large).")
    fallback_used: bool = Field(default=False, description="Whether a larger stamp was substituted.")


class UploadResult(BaseModel):
    reference: str = Field(description="Swarm reference hash.")
    metadata: ProvenanceMetadata
    signed_document: Optional[SignedDocument] = None
    raw_signed_document: Optional[Any] = Field(default=None, description="Signed document exactly as returned by the gateway, kept even when it does not parse.")


class DownloadResult(BaseModel):
    file: bytes = Field(description="Decoded original file content.")
    metadata: ProvenanceMetadata
    signatures: Optional[List[NotarySignature]] = None
    malformed_signatures: List[Any] = Field(default_factory=list, description="Signature entries that could not be parsed; they count as invalid.")
    verified: Optional[bool] = Field(default=None, description="Aggregate signature result; None when not checked.")
    signer_checked: Optional[bool] = Field(default=None, description="False when signatures were checked by data hash only, without a notary address.")

    @property
    def hash_only(self) -> bool:
        """True when "verified" means only that the data hashes matched."""
        return bool(self.verified) and self.signer_checked is False


__all__ = [
    "ProvenanceMetadata",
    "NotarySignature",
    "SignedDocument",
    "SignatureVerification",
    "SignatureCheck",
    "VerificationReport",
    "NotaryInfo",
    "PoolStatus",
    "AcquiredStamp",
    "UploadResult",
    "DownloadResult",
    "ValidationError",
]
