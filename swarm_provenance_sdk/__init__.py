"""
Swarm Provenance SDK - store and retrieve provenance records through the
Swarm Provenance Gateway, re-verifying content hashes and notary signatures
locally.
"""
from swarm_provenance_sdk.core.gateway_client import ProvenanceClient
from swarm_provenance_sdk.core.metadata_builder import (
    build_metadata,
    extract_content,
    verify_content_hash,
    parse_metadata,
    serialize_metadata,
)
from swarm_provenance_sdk.core.notary import (
    verify_signature,
    verify_all_signatures,
    verify_data_hash,
    reconstruct_signed_message,
    to_canonical_json,
)
from swarm_provenance_sdk.core.file_utils import (
    sha256_hex,
    to_bytes,
    bytes_to_base64,
    base64_to_bytes,
    is_valid_hex,
    is_valid_swarm_reference,
    normalize_reference,
)
from swarm_provenance_sdk.errors import (
    ProvenanceError,
    GatewayConnectionError,
    StampError,
    NotaryError,
    VerificationError,
    MetadataParseError,
)
from swarm_provenance_sdk.models import (
    ProvenanceMetadata,
    NotarySignature,
    SignedDocument,
    SignatureVerification,
    VerificationReport,
    NotaryInfo,
    PoolStatus,
    AcquiredStamp,
    UploadResult,
    DownloadResult,
)

__version__ = "0.1.0"
