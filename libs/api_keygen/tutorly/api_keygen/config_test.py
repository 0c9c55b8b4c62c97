from pathlib import Path

import pytest

from tutorly.api_keygen.config import load_config
from tutorly.api_keygen.config import read_config_file_values
from tutorly.api_keygen.config import read_env_values
from tutorly.api_keygen.data_types import DEFAULT_PROPERTIES_PATH
from tutorly.api_keygen.data_types import KeygenConfig
from tutorly.api_keygen.errors import ConfigParseError
from tutorly.api_keygen.primitives import EntropySourceKind
from tutorly.api_keygen.primitives import WriteMode


def test_load_config_defaults() -> None:
    config = load_config(environ={})

    assert config.properties_path == DEFAULT_PROPERTIES_PATH
    assert config.property_key == "api.security.keys"
    assert config.token_length == 32
    assert config.entropy_source == EntropySourceKind.OS
    assert config.write_mode == WriteMode.IN_PLACE


def test_read_config_file_values_uses_keygen_table_and_resolves_relative_paths(tmp_path: Path) -> None:
    config_path = tmp_path / "keygen.toml"
    config_path.write_text(
        '[keygen]\nproperties_path = "backend/application.properties"\ntoken_length = 48\nwrite_mode = "atomic"\n'
    )

    values = read_config_file_values(config_path)

    assert values == {
        "properties_path": tmp_path / "backend/application.properties",
        "token_length": 48,
        "write_mode": "ATOMIC",
    }


def test_read_config_file_values_accepts_top_level_keys(tmp_path: Path) -> None:
    config_path = tmp_path / "keygen.toml"
    config_path.write_text('property_key = "custom.keys"\n')

    assert read_config_file_values(config_path) == {"property_key": "custom.keys"}


def test_read_env_values_maps_variables_to_fields() -> None:
    values = read_env_values(
        {
            "TUTORLY_KEYGEN_PROPERTIES_FILE": "/srv/app.properties",
            "TUTORLY_KEYGEN_TOKEN_LENGTH": "16",
            "TUTORLY_KEYGEN_ENTROPY_SOURCE": "device",
            "TUTORLY_KEYGEN_PROPERTY_KEY": "",
            "UNRELATED": "x",
        }
    )

    assert values == {
        "properties_path": "/srv/app.properties",
        "token_length": "16",
        "entropy_source": "DEVICE",
    }


def test_load_config_precedence_is_file_then_env_then_cli(tmp_path: Path) -> None:
    config_path = tmp_path / "keygen.toml"
    config_path.write_text('[keygen]\ntoken_length = 48\nproperty_key = "file.keys"\nwrite_mode = "ATOMIC"\n')

    config = load_config(
        config_path=config_path,
        cli_overrides={"token_length": 8, "write_mode": None},
        environ={"TUTORLY_KEYGEN_TOKEN_LENGTH": "16", "TUTORLY_KEYGEN_PROPERTY_KEY": "env.keys"},
    )

    assert config.token_length == 8
    assert config.property_key == "env.keys"
    assert config.write_mode == WriteMode.ATOMIC


def test_load_config_reads_file_named_by_env_var(tmp_path: Path) -> None:
    config_path = tmp_path / "keygen.toml"
    config_path.write_text("token_length = 12\n")

    config = load_config(environ={"TUTORLY_KEYGEN_CONFIG": str(config_path)})

    assert config.token_length == 12


def test_load_config_rejects_unknown_field(tmp_path: Path) -> None:
    config_path = tmp_path / "keygen.toml"
    config_path.write_text("colour = 'blue'\n")

    with pytest.raises(ConfigParseError, match="Invalid keygen settings"):
        load_config(config_path=config_path, environ={})


def test_load_config_rejects_invalid_token_length_from_env() -> None:
    with pytest.raises(ConfigParseError, match="environment"):
        load_config(environ={"TUTORLY_KEYGEN_TOKEN_LENGTH": "0"})


def test_load_config_rejects_invalid_toml(tmp_path: Path) -> None:
    config_path = tmp_path / "keygen.toml"
    config_path.write_text("token_length = \n")

    with pytest.raises(ConfigParseError, match="Invalid TOML"):
        load_config(config_path=config_path, environ={})


def test_load_config_rejects_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigParseError, match="not found"):
        load_config(config_path=tmp_path / "nope.toml", environ={})


def test_merge_with_ignores_none_values() -> None:
    config = KeygenConfig()

    assert config.merge_with({"token_length": None}) is config
