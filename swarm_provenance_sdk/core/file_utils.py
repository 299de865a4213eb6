import hashlib
import base64
import binascii
import re
from pathlib import Path
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview, str]

_HEX_RE = re.compile(r"[0-9a-fA-F]+")
SWARM_REFERENCE_LENGTH = 64

def read_file_content(file_path: Path) -> bytes:
    """Reads a file and returns its raw byte content."""
    with file_path.open("rb") as f:
        content = f.read()
    return content

def to_bytes(data: BytesLike) -> bytes:
    """
    Converts supported input to bytes. ``bytes`` is returned as-is,
    other binary buffers are copied into ``bytes`` and text is UTF-8 encoded.
    """
    if isinstance(data, bytes):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, str):
        return data.encode("utf-8")
    raise TypeError(f"Unsupported content type: {type(data).__name__}")

def sha256_hex(data: BytesLike) -> str:
     """Calculates SHA256 hash of the data and returns a lowercase hex string."""
     return hashlib.sha256(to_bytes(data)).hexdigest()

calculate_sha256 = sha256_hex

def bytes_to_base64(data: bytes) -> str:
     """Base64 encodes byte data and returns UTF-8 decoded string."""
     return base64.b64encode(to_bytes(data)).decode('utf-8')

def base64_to_bytes(b64_data: str) -> bytes:
    """Base64 decodes a string and returns bytes."""
    try:
        return base64.b64decode(b64_data, validate=True)
    except (binascii.Error, ValueError) as e: # Catch padding and alphabet errors
        raise ValueError(f"Invalid Base64 data: {e}") from e

def is_valid_hex(value: str) -> bool:
    return _HEX_RE.fullmatch(value) is not None

def is_valid_swarm_reference(ref: str) -> bool:
    """A Swarm reference is exactly 64 hex characters."""
    return len(ref) == SWARM_REFERENCE_LENGTH and is_valid_hex(ref)

def normalize_reference(ref: str) -> str:
    return ref.strip().lower()

def save_bytes_to_file(file_path: Path, data: bytes) -> None:
    """Saves byte data to the specified file_path."""
    # Ensure parent directory exists
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with file_path.open("wb") as f:
        f.write(data)
