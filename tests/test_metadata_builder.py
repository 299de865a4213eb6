import json
import pytest
from swarm_provenance_sdk.core import metadata_builder, file_utils
from swarm_provenance_sdk.errors import MetadataParseError
from swarm_provenance_sdk.models import ProvenanceMetadata


def test_build_metadata_hello_world():
     metadata = metadata_builder.build_metadata("Hello, World!", stamp_id="stamp123")

     assert metadata.data == "SGVsbG8sIFdvcmxkIQ=="
     assert metadata.content_hash == file_utils.sha256_hex("Hello, World!")
     assert metadata.stamp_id == "stamp123"
     assert metadata.provenance_standard is None
     assert metadata.encryption is None

def test_build_metadata_optional_fields_only_when_set():
     metadata = metadata_builder.build_metadata(b"data", stamp_id="s", standard="PROV-O", encryption="")
     assert metadata.provenance_standard == "PROV-O"
     assert metadata.encryption is None

def test_serialized_metadata_omits_unset_fields():
     metadata = metadata_builder.build_metadata("test", stamp_id="stamp123")
     serialized = json.loads(metadata_builder.serialize_metadata(metadata))
     assert set(serialized) == {"data", "content_hash", "stamp_id"}

def test_verify_content_hash():
     metadata = metadata_builder.build_metadata(bytes(range(50)), stamp_id="stamp123")
     assert metadata_builder.verify_content_hash(metadata)

     tampered = metadata.model_copy(update={"content_hash": "0" * 64})
     assert not metadata_builder.verify_content_hash(tampered)

def test_verify_content_hash_false_on_undecodable_data():
     metadata = ProvenanceMetadata(data="@@@", content_hash="0" * 64, stamp_id="s")
     assert metadata_builder.verify_content_hash(metadata) is False

def test_extract_content_does_not_check_hash():
     metadata = ProvenanceMetadata(data="aGVsbG8=", content_hash="wrong", stamp_id="s")
     assert metadata_builder.extract_content(metadata) == b"hello"

@pytest.mark.parametrize("kwargs", [
     {},
     {"standard": "PROV-O"},
     {"standard": "PROV-O", "encryption": "aes-256-gcm"},
])
def test_serialize_parse_round_trip(kwargs):
     metadata = metadata_builder.build_metadata("héllo wörld", stamp_id="stamp123", **kwargs)
     assert metadata_builder.parse_metadata(metadata_builder.serialize_metadata(metadata)) == metadata

@pytest.mark.parametrize("missing", ["data", "content_hash", "stamp_id"])
def test_parse_metadata_names_missing_field(missing):
     fields = {"data": "aGVsbG8=", "content_hash": "abc", "stamp_id": "s"}
     del fields[missing]
     with pytest.raises(MetadataParseError, match=f"missing or invalid {missing} field"):
         metadata_builder.parse_metadata(json.dumps(fields))

def test_parse_metadata_rejects_wrong_type():
     with pytest.raises(MetadataParseError, match="stamp_id"):
         metadata_builder.parse_metadata(json.dumps({"data": "", "content_hash": "abc", "stamp_id": 5}))

def test_parse_metadata_rejects_non_object():
     with pytest.raises(MetadataParseError, match="expected object"):
         metadata_builder.parse_metadata("[1, 2]")
     with pytest.raises(MetadataParseError):
         metadata_builder.parse_metadata("{not json")

def test_parse_metadata_ignores_unknown_and_non_string_optionals():
     metadata = metadata_builder.parse_metadata(json.dumps({
         "data": "aGVsbG8=",
         "content_hash": "abc",
         "stamp_id": "s",
         "provenance_standard": 42,
         "encryption": "none",
         "extra": "ignored",
     }))
     assert metadata.provenance_standard is None
     assert metadata.encryption == "none"
     assert "extra" not in metadata.to_dict()
