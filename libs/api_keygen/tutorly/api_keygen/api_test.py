from pathlib import Path

import pytest

from tutorly.api_keygen.api import generate_key
from tutorly.api_keygen.api import list_registered_keys
from tutorly.api_keygen.api import register_new_key
from tutorly.api_keygen.data_types import KeygenConfig
from tutorly.api_keygen.errors import EntropySourceUnavailableError
from tutorly.api_keygen.errors import FileUnreadableError
from tutorly.api_keygen.primitives import EntropySourceKind
from tutorly.api_keygen.primitives import PropertyKey
from tutorly.api_keygen.primitives import TokenLength
from tutorly.api_keygen.primitives import UpdateOutcome
from tutorly.api_keygen.testing import FixedEntropySource


def test_register_new_key_appends_generated_token(properties_path: Path) -> None:
    config = KeygenConfig(properties_path=properties_path, token_length=TokenLength(4))

    result = register_new_key(config, source=FixedEntropySource(data=bytes([0, 1, 2, 3])))

    assert result.token == "ABCD"
    assert result.update.outcome == UpdateOutcome.LINE_FOUND
    assert list_registered_keys(config) == ("abc", "ABCD")


def test_register_new_key_uses_configured_property_key(properties_path: Path) -> None:
    config = KeygenConfig(properties_path=properties_path, property_key=PropertyKey("internal.keys"))

    result = register_new_key(config)

    assert result.update.outcome == UpdateOutcome.LINE_APPENDED
    assert properties_path.read_text().splitlines()[-1] == f"internal.keys={result.token}"
    assert len(result.token) == 32


def test_register_new_key_does_not_touch_file_when_entropy_fails(properties_path: Path) -> None:
    original_content = properties_path.read_bytes()
    config = KeygenConfig(properties_path=properties_path, token_length=TokenLength(8))

    with pytest.raises(EntropySourceUnavailableError):
        register_new_key(config, source=FixedEntropySource(data=b"\x00"))

    assert properties_path.read_bytes() == original_content


def test_register_new_key_with_device_source_from_config(properties_path: Path, tmp_path: Path) -> None:
    device = tmp_path / "random"
    device.write_bytes(bytes([52, 53, 54]))
    config = KeygenConfig(
        properties_path=properties_path,
        token_length=TokenLength(3),
        entropy_source=EntropySourceKind.DEVICE,
        entropy_device_path=device,
    )

    result = register_new_key(config)

    assert result.token == "012"


def test_register_new_key_raises_for_missing_file(tmp_path: Path) -> None:
    config = KeygenConfig(properties_path=tmp_path / "missing.properties")

    with pytest.raises(FileUnreadableError):
        register_new_key(config)

    assert not (tmp_path / "missing.properties").exists()


def test_generate_key_leaves_file_alone(properties_path: Path) -> None:
    original_content = properties_path.read_bytes()
    config = KeygenConfig(properties_path=properties_path, token_length=TokenLength(10))

    token = generate_key(config)

    assert len(token) == 10
    assert properties_path.read_bytes() == original_content
