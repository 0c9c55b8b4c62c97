from loguru import logger

from tutorly.api_keygen.data_types import KeyRegistrationResult
from tutorly.api_keygen.data_types import KeygenConfig
from tutorly.api_keygen.key_generator import EntropySource
from tutorly.api_keygen.key_generator import build_entropy_source
from tutorly.api_keygen.key_generator import generate_token
from tutorly.api_keygen.logging import log_call
from tutorly.api_keygen.logging import log_span
from tutorly.api_keygen.primitives import Token
from tutorly.api_keygen.properties_file import add_token_to_properties_file
from tutorly.api_keygen.properties_file import read_registered_keys


def _resolve_source(config: KeygenConfig, source: EntropySource | None) -> EntropySource:
    if source is not None:
        return source
    return build_entropy_source(config.entropy_source, config.entropy_device_path)


@log_call
def generate_key(config: KeygenConfig, source: EntropySource | None = None) -> Token:
    """Generate a new API key without touching the properties file."""
    return generate_token(config.token_length, _resolve_source(config, source))


@log_call
def register_new_key(config: KeygenConfig, source: EntropySource | None = None) -> KeyRegistrationResult:
    """Generate a new API key and append it to the key property of the configured file.

    The key is generated before the file is opened, so an entropy failure
    leaves the file untouched.
    """
    entropy_source = _resolve_source(config, source)
    with log_span("Generating {}-character API key", config.token_length):
        token = generate_token(config.token_length, entropy_source)

    update = add_token_to_properties_file(
        path=config.properties_path,
        key=config.property_key,
        token=token,
        write_mode=config.write_mode,
    )
    logger.debug("Registered new key in {} ({})", update.path, update.outcome)
    return KeyRegistrationResult(token=token, update=update)


@log_call
def list_registered_keys(config: KeygenConfig) -> tuple[str, ...]:
    """Return the keys currently listed under the key property, in file order."""
    return read_registered_keys(config.properties_path, config.property_key)
