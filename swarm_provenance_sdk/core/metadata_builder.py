import json
from typing import Optional

from swarm_provenance_sdk.core import file_utils
from swarm_provenance_sdk.errors import MetadataParseError
from swarm_provenance_sdk.models import ProvenanceMetadata

REQUIRED_FIELDS = ("data", "content_hash", "stamp_id")
OPTIONAL_FIELDS = ("provenance_standard", "encryption")

def build_metadata(
    content: file_utils.BytesLike,
    stamp_id: str,
    standard: Optional[str] = None,
    encryption: Optional[str] = None
    ) -> ProvenanceMetadata:
        """
        Hashes and Base64-encodes the content and wraps it in a
        ProvenanceMetadata model. Empty optional tags are left unset.
        """
        raw_content = file_utils.to_bytes(content)
        fields = {
             "data": file_utils.bytes_to_base64(raw_content),
             "content_hash": file_utils.sha256_hex(raw_content),
             "stamp_id": stamp_id,
        }
        if standard:
            fields["provenance_standard"] = standard
        if encryption:
            fields["encryption"] = encryption
        return ProvenanceMetadata(**fields)

def extract_content(metadata: ProvenanceMetadata) -> bytes:
    """Decodes the wrapped data. The content hash is NOT checked here."""
    return file_utils.base64_to_bytes(metadata.data)

def verify_content_hash(metadata: ProvenanceMetadata) -> bool:
    try:
        content = extract_content(metadata)
    except ValueError:
        return False
    return file_utils.sha256_hex(content) == metadata.content_hash

def serialize_metadata(metadata: ProvenanceMetadata) -> str:
    """
    Converts the metadata to its compact JSON representation for
    uploading. Unset optional fields are omitted.
     """
    return json.dumps(metadata.to_dict(), separators=(",", ":"), ensure_ascii=False)

def serialize_metadata_to_bytes(metadata: ProvenanceMetadata) -> bytes:
    return serialize_metadata(metadata).encode('utf-8')

def metadata_from_dict(obj) -> ProvenanceMetadata:
    """
    Validates a decoded JSON object as provenance metadata. Unknown keys are
    ignored and optional fields are only kept when they are strings.
    """
    if not isinstance(obj, dict):
        raise MetadataParseError("Invalid metadata: expected object")
    for field in REQUIRED_FIELDS:
        if not isinstance(obj.get(field), str):
            raise MetadataParseError(f"Invalid metadata: missing or invalid {field} field")

    fields = {field: obj[field] for field in REQUIRED_FIELDS}
    for field in OPTIONAL_FIELDS:
        if isinstance(obj.get(field), str):
            fields[field] = obj[field]
    return ProvenanceMetadata(**fields)

def parse_metadata(json_text: str) -> ProvenanceMetadata:
    try:
        parsed = json.loads(json_text)
    except json.JSONDecodeError as e:
        raise MetadataParseError(f"Invalid metadata: not valid JSON ({e})") from e
    return metadata_from_dict(parsed)
