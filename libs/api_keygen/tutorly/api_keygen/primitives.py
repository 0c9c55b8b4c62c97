import string
from enum import StrEnum
from enum import auto
from typing import Any
from typing import Final
from typing import Self

from pydantic import GetCoreSchemaHandler
from pydantic_core import CoreSchema
from pydantic_core import core_schema

# Order matters: byte values are mapped onto this sequence by index.
TOKEN_ALPHABET: Final[str] = string.ascii_uppercase + string.ascii_lowercase + string.digits

DEFAULT_TOKEN_LENGTH: Final[int] = 32

DEFAULT_PROPERTY_KEY: Final[str] = "api.security.keys"


class UpperCaseStrEnum(StrEnum):
    """A StrEnum whose member values are the upper-cased member names."""

    @staticmethod
    def _generate_next_value_(
        name: str,
        start: int,
        count: int,
        last_values: list[str],
    ) -> str:
        return name.upper()


# === Enums ===


class EntropySourceKind(UpperCaseStrEnum):
    """Where random bytes for new tokens come from."""

    OS = auto()
    DEVICE = auto()


class UpdateOutcome(UpperCaseStrEnum):
    """What happened to the key property line during an update."""

    LINE_FOUND = auto()
    LINE_APPENDED = auto()


class WriteMode(UpperCaseStrEnum):
    """How the updated properties file is written back to disk.

    IN_PLACE: truncate the target and rewrite it. A failure part way through
        can leave the file truncated.
    ATOMIC: write a sibling temp file and rename it over the target.
    """

    IN_PLACE = auto()
    ATOMIC = auto()


class LogLevel(UpperCaseStrEnum):
    """Log verbosity level."""

    TRACE = auto()
    DEBUG = auto()
    INFO = auto()
    WARN = auto()
    ERROR = auto()
    NONE = auto()


class OutputFormat(UpperCaseStrEnum):
    """Output format mode."""

    HUMAN = auto()
    JSON = auto()


# === Validated scalars ===


class TokenLength(int):
    """Number of characters in a generated token. Must be >= 1."""

    def __new__(cls, value: int) -> Self:
        if value < 1:
            raise ValueError(f"{cls.__name__} must be >= 1, got {value}")
        return super().__new__(cls, value)

    @classmethod
    def __get_pydantic_core_schema__(
        cls,
        source_type: Any,
        handler: GetCoreSchemaHandler,
    ) -> CoreSchema:
        return core_schema.no_info_after_validator_function(
            cls,
            core_schema.int_schema(ge=1),
        )


class Token(str):
    """An API key: a non-empty string drawn from TOKEN_ALPHABET."""

    def __new__(cls, value: str) -> Self:
        if not value:
            raise ValueError(f"{cls.__name__} cannot be empty")
        invalid_chars = sorted(set(value) - set(TOKEN_ALPHABET))
        if invalid_chars:
            raise ValueError(f"{cls.__name__} contains characters outside the alphabet: {''.join(invalid_chars)!r}")
        return super().__new__(cls, value)

    @classmethod
    def __get_pydantic_core_schema__(
        cls,
        source_type: Any,
        handler: GetCoreSchemaHandler,
    ) -> CoreSchema:
        return core_schema.no_info_after_validator_function(
            cls,
            core_schema.str_schema(min_length=1),
            serialization=core_schema.to_string_ser_schema(),
        )


class PropertyKey(str):
    """The key of a `key=value` line in a properties file."""

    def __new__(cls, value: str) -> Self:
        if not value or not value.strip():
            raise ValueError(f"{cls.__name__} cannot be empty")
        if value != value.strip():
            raise ValueError(f"{cls.__name__} cannot have leading or trailing whitespace: {value!r}")
        if "=" in value or "\n" in value or "\r" in value:
            raise ValueError(f"{cls.__name__} cannot contain '=' or line breaks: {value!r}")
        return super().__new__(cls, value)

    @classmethod
    def __get_pydantic_core_schema__(
        cls,
        source_type: Any,
        handler: GetCoreSchemaHandler,
    ) -> CoreSchema:
        return core_schema.no_info_after_validator_function(
            cls,
            core_schema.str_schema(min_length=1),
            serialization=core_schema.to_string_ser_schema(),
        )
