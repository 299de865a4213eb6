"""
Verification of notary signatures attached to provenance documents.

The notary signs a ``data_hash`` computed over a canonical JSON view of the
metadata fields it lists in ``hashed_fields``. This module recomputes that
hash and compares it; it does NOT recover the signer from the signature bytes.
A signature therefore counts as valid when its data hash matches and, if an
expected signer is given, when the asserted ``signer`` string matches it.

Hashing convention: canonical JSON (sorted keys, no whitespace) of an object
holding the hashed fields, or of the bare ``data`` string when that is the only
hashed field. Gateways that hash the plain concatenation of field values are
not supported.
"""
import json
import logging
from typing import Any, List, Optional

from swarm_provenance_sdk.core.file_utils import sha256_hex
from swarm_provenance_sdk.errors import VerificationError
from swarm_provenance_sdk.models import (
    NotarySignature,
    ProvenanceMetadata,
    SignatureCheck,
    SignatureVerification,
    VerificationReport,
)

logger = logging.getLogger(__name__)

HASHABLE_FIELDS = ("content_hash", "data", "stamp_id", "provenance_standard")


def to_canonical_json(value: Any) -> str:
    """Deterministic JSON: keys sorted, arrays in order, no whitespace."""
    if isinstance(value, dict):
        pairs = [
            json.dumps(key, ensure_ascii=False) + ":" + to_canonical_json(value[key])
            for key in sorted(value)
        ]
        return "{" + ",".join(pairs) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(to_canonical_json(item) for item in value) + "]"
    return json.dumps(value, ensure_ascii=False)


def _hashed_value(hashed_fields: List[str], metadata: ProvenanceMetadata) -> Any:
    # The gateway hashes the bare string when only "data" is signed
    if hashed_fields == ["data"]:
        return metadata.data

    view = {}
    for field in hashed_fields:
        if field not in HASHABLE_FIELDS:
            continue
        if field == "provenance_standard":
            view[field] = metadata.provenance_standard or ""
        else:
            view[field] = getattr(metadata, field)
    return view


def compute_data_hash(hashed_fields: List[str], metadata: ProvenanceMetadata) -> str:
    return sha256_hex(to_canonical_json(_hashed_value(hashed_fields, metadata)))


def verify_data_hash(signature: NotarySignature, metadata: ProvenanceMetadata) -> bool:
    return compute_data_hash(signature.hashed_fields, metadata) == signature.data_hash


def reconstruct_signed_message(signature: NotarySignature, metadata: ProvenanceMetadata) -> str:
    """
    Fills the signature's message template for display. Only the first
    occurrence of each placeholder is substituted.
    """
    message = signature.signed_message_format
    message = message.replace("{timestamp}", signature.timestamp, 1)
    message = message.replace("{data_hash}", signature.data_hash, 1)
    return message


def recover_signer(message: str, signature: str) -> str:
    raise VerificationError(
        "Signature recovery not implemented - signer is checked against the asserted address only",
        code="NOT_IMPLEMENTED",
    )


def verify_signature(
    signature: NotarySignature,
    metadata: ProvenanceMetadata,
    expected_signer: Optional[str] = None,
) -> SignatureVerification:
    """
    Checks one notary signature against the metadata.

    Without ``expected_signer`` a passing result only means the data hash
    matched; ``signer_valid`` stays None and ``hash_only`` is True.
    """
    if not verify_data_hash(signature, metadata):
        logger.warning("Notary signature data hash mismatch (signer %s)", signature.signer)
        return SignatureVerification(valid=False, data_hash_valid=False, error="Data hash mismatch")

    if expected_signer:
        if signature.signer.lower() != expected_signer.lower():
            logger.warning("Notary signer mismatch: expected %s, got %s", expected_signer, signature.signer)
            return SignatureVerification(
                valid=False,
                data_hash_valid=True,
                signer_valid=False,
                error=f"Signer mismatch: expected {expected_signer}, got {signature.signer}",
            )
        return SignatureVerification(valid=True, data_hash_valid=True, signer_valid=True)

    logger.debug("Notary signature data hash verified; signer %s not checked", signature.signer)
    return SignatureVerification(valid=True, data_hash_valid=True)


def verify_all_signatures(
    signatures: List[NotarySignature],
    metadata: ProvenanceMetadata,
    expected_signer: Optional[str] = None,
) -> VerificationReport:
    results = []
    for index, signature in enumerate(signatures):
        outcome = verify_signature(signature, metadata, expected_signer)
        results.append(SignatureCheck(index=index, valid=outcome.valid, error=outcome.error))
    return VerificationReport(all_valid=all(r.valid for r in results), results=results)
