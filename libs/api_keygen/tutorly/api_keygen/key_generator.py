"""Random API key generation.

Tokens are built by reading one random byte per output character from an
operating system entropy source and mapping each byte onto TOKEN_ALPHABET
with ``byte % 62``. Because 256 is not a multiple of 62, the first 8 symbols
of the alphabet (A-H) are slightly more likely than the rest. The mapping is
kept as-is so that keys stay compatible with the ones already issued.
"""

import os
from abc import ABC
from abc import abstractmethod
from pathlib import Path

from loguru import logger
from pydantic import Field

from tutorly.api_keygen.data_types import DEFAULT_ENTROPY_DEVICE_PATH
from tutorly.api_keygen.data_types import FrozenModel
from tutorly.api_keygen.errors import EntropySourceUnavailableError
from tutorly.api_keygen.primitives import EntropySourceKind
from tutorly.api_keygen.primitives import TOKEN_ALPHABET
from tutorly.api_keygen.primitives import Token
from tutorly.api_keygen.primitives import TokenLength


class EntropySource(FrozenModel, ABC):
    """Interface for suppliers of cryptographically suitable random bytes."""

    @abstractmethod
    def describe(self) -> str:
        """Return a short human-readable name for this source, used in errors."""
        ...

    @abstractmethod
    def read(self, num_bytes: int) -> bytes:
        """Return exactly num_bytes random bytes.

        Raises EntropySourceUnavailableError if the source cannot be opened or
        read, or yields fewer bytes than requested.
        """
        ...


class OsEntropySource(EntropySource):
    """Random bytes from the operating system CSPRNG via os.urandom."""

    def describe(self) -> str:
        return "os.urandom"

    def read(self, num_bytes: int) -> bytes:
        try:
            data = os.urandom(num_bytes)
        except NotImplementedError as e:
            raise EntropySourceUnavailableError(self.describe(), f"no randomness source on this platform: {e}") from e
        except OSError as e:
            raise EntropySourceUnavailableError(self.describe(), str(e)) from e
        return require_exact_length(self, data, num_bytes)


class DeviceEntropySource(EntropySource):
    """Random bytes read from a character device such as /dev/urandom."""

    device_path: Path = Field(default=DEFAULT_ENTROPY_DEVICE_PATH, description="Path of the random device")

    def describe(self) -> str:
        return str(self.device_path)

    def read(self, num_bytes: int) -> bytes:
        try:
            with open(self.device_path, "rb") as device:
                data = device.read(num_bytes)
        except OSError as e:
            raise EntropySourceUnavailableError(self.describe(), e.strerror or str(e)) from e
        return require_exact_length(self, data, num_bytes)


def require_exact_length(source: EntropySource, data: bytes, num_bytes: int) -> bytes:
    if len(data) != num_bytes:
        raise EntropySourceUnavailableError(
            source.describe(),
            f"short read: wanted {num_bytes} bytes, got {len(data)}",
        )
    return data


def build_entropy_source(
    kind: EntropySourceKind,
    device_path: Path = DEFAULT_ENTROPY_DEVICE_PATH,
) -> EntropySource:
    """Create the entropy source selected by configuration."""
    match kind:
        case EntropySourceKind.OS:
            return OsEntropySource()
        case EntropySourceKind.DEVICE:
            return DeviceEntropySource(device_path=device_path)
        case _:
            raise ValueError(f"Unknown entropy source kind: {kind}")


def map_bytes_to_token(data: bytes) -> Token:
    """Map each byte onto TOKEN_ALPHABET by index ``byte % len(TOKEN_ALPHABET)``."""
    alphabet_size = len(TOKEN_ALPHABET)
    return Token("".join(TOKEN_ALPHABET[byte % alphabet_size] for byte in data))


def generate_token(length: TokenLength, source: EntropySource) -> Token:
    """Generate a token of exactly `length` characters, consuming `length` bytes from source.

    Entropy failures are not retried.
    """
    length = TokenLength(length)
    logger.trace("Reading {} random bytes from {}", length, source.describe())
    return map_bytes_to_token(source.read(length))
