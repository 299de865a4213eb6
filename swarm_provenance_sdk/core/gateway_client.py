"""
HTTP client for the Swarm Provenance Gateway.

The client holds only immutable configuration; every call is a fresh,
self-contained round trip and nothing is cached between calls.
"""
import json
import logging
from pathlib import Path
from typing import Optional, Union, BinaryIO

import requests
from pydantic import ValidationError
from requests.structures import CaseInsensitiveDict

from swarm_provenance_sdk import config
from swarm_provenance_sdk.core import file_utils, metadata_builder, notary
from swarm_provenance_sdk.errors import (
    GatewayConnectionError,
    MetadataParseError,
    NotaryError,
    ProvenanceError,
    StampError,
)
from swarm_provenance_sdk.models import (
    AcquiredStamp,
    DownloadResult,
    NotaryInfo,
    NotarySignature,
    PoolStatus,
    SignedDocument,
    UploadResult,
)

logger = logging.getLogger(__name__)

PAYMENT_MODE_HEADER = "X-Payment-Mode"
UPLOAD_FILENAME = "provenance.json"

Content = Union[bytes, bytearray, memoryview, str, Path, BinaryIO]


class ProvenanceClient:
    """Client for storing and retrieving provenance records through the gateway."""

    def __init__(
        self,
        gateway_url: Optional[str] = None,
        timeout: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            gateway_url: Base URL of the gateway. Defaults to PROVENANCE_GATEWAY_URL.
            timeout: Per-request deadline in milliseconds. Defaults to PROVENANCE_TIMEOUT_MS.
            session: Optional requests session to send requests through.
        """
        url = gateway_url if gateway_url is not None else config.PROVENANCE_GATEWAY_URL
        self.gateway_url = url[:-1] if url.endswith("/") else url
        self.timeout = timeout if timeout is not None else config.DEFAULT_TIMEOUT_MS
        if self.timeout <= 0:
            raise ValueError(f"Timeout must be a positive number of milliseconds, got {self.timeout}")
        self._http = session if session is not None else requests

    # --- Status endpoints ---

    def health(self) -> bool:
        """Returns True when the gateway answers /health with a 2xx. Never raises."""
        try:
            response = self._request("GET", "/health")
        except GatewayConnectionError as e:
            logger.debug("Health check failed: %s", e)
            return False
        return response.ok

    def notary_info(self) -> NotaryInfo:
        response = self._request("GET", "/api/v1/notary/info")
        if not response.ok:
            if response.status_code == 404:
                return NotaryInfo(enabled=False, available=False)
            raise self._error_from_response(response)
        return self._parse_model(response, NotaryInfo)

    def pool_status(self) -> PoolStatus:
        response = self._request("GET", "/api/v1/pool/status")
        if not response.ok:
            if response.status_code == 404:
                return PoolStatus(enabled=False, available={}, reserve={})
            raise self._error_from_response(response)
        return self._parse_model(response, PoolStatus)

    def acquire_stamp(self, size: str = "small") -> AcquiredStamp:
        """
        Acquires a stamp from the gateway's pool. Any non-2xx answer is
        reported as StampError, whatever the status code.
        """
        if size not in config.POOL_SIZES:
            raise ValueError(f"Invalid pool size '{size}', expected one of {', '.join(config.POOL_SIZES)}")

        response = self._request("POST", "/api/v1/pool/acquire", json={"size": size})
        if not response.ok:
            error = self._error_from_response(response)
            raise StampError(error.message, error.code) from error

        stamp = self._parse_model(response, AcquiredStamp)
        logger.debug("Acquired stamp %s (depth %s, fallback=%s)", stamp.batch_id, stamp.depth, stamp.fallback_used)
        return stamp

    # --- Data endpoints ---

    def upload(
        self,
        content: Content,
        sign: Optional[str] = None,
        standard: Optional[str] = None,
        stamp_id: Optional[str] = None,
        pool_size: str = "small",
        content_type: Optional[str] = None,
        encryption: Optional[str] = None,
    ) -> UploadResult:
        """
        Wraps the content in provenance metadata and uploads it.

        Args:
            content: Raw bytes, text, a path, or a binary file object.
            sign: "notary" to request a notary signature from the gateway.
            standard: Provenance standard identifier stored in the metadata.
            stamp_id: Existing stamp to use; when omitted one is acquired from the pool.
            pool_size: Pool size preset used when acquiring a stamp.
            content_type: Content type forwarded to the gateway.
            encryption: Advisory encryption tag stored in the metadata.

        The signed document returned by the gateway is passed through as-is;
        it is verified on download, not here.
        """
        if sign not in (None, "notary"):
            raise ValueError(f"Unsupported signing mode '{sign}'")

        if not stamp_id:
            stamp_id = self.acquire_stamp(pool_size).batch_id

        raw_content = _read_content(content)
        metadata = metadata_builder.build_metadata(
            raw_content, stamp_id=stamp_id, standard=standard, encryption=encryption
        )

        params = {"stamp_id": stamp_id}
        if content_type:
            params["content_type"] = content_type
        if sign == "notary":
            params["sign"] = "notary"
        files = {
            "file": (UPLOAD_FILENAME, metadata_builder.serialize_metadata_to_bytes(metadata), "application/json")
        }

        try:
            response = self._request("POST", "/api/v1/data/", params=params, files=files)
            if not response.ok:
                raise self._error_from_response(response)
        except GatewayConnectionError as e:
            if sign == "notary":
                raise NotaryError(e.message, e.code, e.status_code) from e
            raise

        data = self._json_body(response)
        reference = data.get("reference")
        if not reference:
            raise GatewayConnectionError(
                "API Response missing 'reference' from upload", response.status_code, "INVALID_RESPONSE"
            )

        # The data is stored at this point; a malformed signed document must not lose the reference
        raw_signed_document = data.get("signed_document") or None
        signed_document = None
        if raw_signed_document is not None:
            try:
                signed_document = SignedDocument.model_validate(raw_signed_document)
            except ValidationError as e:
                logger.warning("Upload %s returned a malformed signed document: %s", reference, e)

        logger.debug("Uploaded provenance metadata, reference %s", reference)
        return UploadResult(
            reference=reference,
            metadata=metadata,
            signed_document=signed_document,
            raw_signed_document=raw_signed_document,
        )

    def download(self, reference: str, verify: bool = True) -> DownloadResult:
        """
        Downloads a provenance record, checks its content hash and, when the
        record is signed and ``verify`` is True, checks the notary signatures
        against the gateway's notary address.

        Raises:
            ProvenanceError: code CONTENT_HASH_MISMATCH when the content was tampered with.
        """
        reference = file_utils.normalize_reference(reference)
        if not file_utils.is_valid_swarm_reference(reference):
            raise ValueError(f"Invalid Swarm reference '{reference}': expected 64 hex characters")

        response = self._request("GET", f"/api/v1/data/{reference}")
        if not response.ok:
            raise self._error_from_response(response)

        body = self._json_body(response)
        # Either {metadata: {...}, signatures: [...]} or the metadata fields at top level
        raw_metadata = body.get("metadata") or body
        raw_signatures = body.get("signatures")
        try:
            metadata = metadata_builder.metadata_from_dict(raw_metadata)
        except MetadataParseError as e:
            raise GatewayConnectionError(
                f"Invalid provenance document for {reference}: {e}", response.status_code, "INVALID_RESPONSE"
            ) from e

        if not metadata_builder.verify_content_hash(metadata):
            logger.warning("Content hash mismatch for reference %s", reference)
            raise ProvenanceError("Content hash verification failed", "CONTENT_HASH_MISMATCH")
        content = metadata_builder.extract_content(metadata)

        signatures, malformed = _parse_signatures(raw_signatures, reference)

        verified = None
        signer_checked = None
        if (signatures or malformed) and verify:
            verified = not malformed
            notary_address = None
            if signatures:
                notary_address = self.notary_info().address
                if not notary_address:
                    logger.warning("Notary address unavailable; signatures for %s checked by data hash only", reference)
                report = notary.verify_all_signatures(signatures, metadata, notary_address)
                verified = verified and report.all_valid
            signer_checked = bool(notary_address)

        return DownloadResult(
            file=content,
            metadata=metadata,
            signatures=signatures,
            malformed_signatures=malformed,
            verified=verified,
            signer_checked=signer_checked,
        )

    # --- Transport ---

    def _request(self, method: str, path: str, headers: Optional[dict] = None, **kwargs) -> requests.Response:
        url = f"{self.gateway_url}{path}"
        merged_headers = CaseInsensitiveDict(headers or {})
        if PAYMENT_MODE_HEADER not in merged_headers:
            merged_headers[PAYMENT_MODE_HEADER] = "free"

        logger.debug("%s %s", method, url)
        try:
            response = self._http.request(
                method, url, headers=merged_headers, timeout=self.timeout / 1000, **kwargs
            )
        except requests.exceptions.Timeout as e:
            logger.debug("%s %s timed out after %sms", method, url, self.timeout)
            raise GatewayConnectionError("Request timed out", code="TIMEOUT") from e
        except requests.exceptions.RequestException as e:
            logger.debug("%s %s failed: %s", method, url, e)
            raise GatewayConnectionError(str(e) or "Failed to connect to gateway", code="CONNECTION_FAILED") from e

        logger.debug("%s %s -> %s", method, url, response.status_code)
        return response

    @staticmethod
    def _error_from_response(response: requests.Response) -> GatewayConnectionError:
        message = f"Gateway error: {response.status_code} {response.reason or ''}".rstrip()
        code = None
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            detail = data.get("detail")
            if detail:
                message = detail if isinstance(detail, str) else json.dumps(detail)
            code = data.get("code")
        return GatewayConnectionError(message, response.status_code, code)

    @staticmethod
    def _json_body(response: requests.Response) -> dict:
        try:
            data = response.json()
        except ValueError as e:
            raise GatewayConnectionError(
                f"Gateway returned invalid JSON: {e}", response.status_code, "INVALID_RESPONSE"
            ) from e
        if not isinstance(data, dict):
            raise GatewayConnectionError(
                "Gateway returned unexpected JSON, expected an object", response.status_code, "INVALID_RESPONSE"
            )
        return data

    @classmethod
    def _parse_model(cls, response: requests.Response, model):
        try:
            return model.model_validate(cls._json_body(response))
        except ValidationError as e:
            raise GatewayConnectionError(
                f"Unexpected {model.__name__} response: {e}", response.status_code, "INVALID_RESPONSE"
            ) from e


def _parse_signatures(raw_signatures, reference: str):
    """
    Validates signature entries one by one. Entries that do not parse are
    returned separately and count as invalid signatures, never as a failed download.
    """
    if raw_signatures is None:
        return None, []
    if not isinstance(raw_signatures, list):
        logger.warning("Signatures for %s are not a list; treating them as invalid", reference)
        return [], [raw_signatures]

    signatures, malformed = [], []
    for index, entry in enumerate(raw_signatures):
        try:
            signatures.append(NotarySignature.model_validate(entry))
        except ValidationError as e:
            logger.warning("Malformed notary signature %d for %s: %s", index, reference, e)
            malformed.append(entry)
    return signatures, malformed


def _read_content(content: Content) -> bytes:
    if isinstance(content, Path):
        return file_utils.read_file_content(content)
    if hasattr(content, "read"):
        return file_utils.to_bytes(content.read())
    return file_utils.to_bytes(content)
