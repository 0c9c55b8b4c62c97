from pathlib import Path
from typing import Any
from typing import Final
from typing import Self

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from tutorly.api_keygen.primitives import DEFAULT_PROPERTY_KEY
from tutorly.api_keygen.primitives import DEFAULT_TOKEN_LENGTH
from tutorly.api_keygen.primitives import EntropySourceKind
from tutorly.api_keygen.primitives import PropertyKey
from tutorly.api_keygen.primitives import Token
from tutorly.api_keygen.primitives import TokenLength
from tutorly.api_keygen.primitives import UpdateOutcome
from tutorly.api_keygen.primitives import WriteMode

# Where Spring Boot keeps application.properties relative to the backend project root.
DEFAULT_PROPERTIES_PATH: Final[Path] = Path("src/main/resources/application.properties")

DEFAULT_ENTROPY_DEVICE_PATH: Final[Path] = Path("/dev/urandom")


class FrozenModel(BaseModel):
    """Base class for immutable pydantic models that prevent attribute mutation after construction."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=False,
    )


class PropertiesDocument(FrozenModel):
    """The lines of a properties file, in file order, without line terminators."""

    lines: tuple[str, ...] = Field(default=(), description="File lines with the trailing newline removed")


class PropertiesUpdateResult(FrozenModel):
    """Outcome of appending a token to the key property of a properties file."""

    path: Path = Field(description="The properties file that was updated")
    property_key: PropertyKey = Field(description="The multi-value property the token was added to")
    outcome: UpdateOutcome = Field(description="Whether an existing line was extended or a new one appended")
    line_index: int = Field(ge=0, description="Zero-based index of the key line after the update")

    @property
    def is_property_line_missing(self) -> bool:
        return self.outcome == UpdateOutcome.LINE_APPENDED


class KeyRegistrationResult(FrozenModel):
    """A generated token together with where it was registered."""

    token: Token = Field(description="The newly generated API key")
    update: PropertiesUpdateResult = Field(description="How the properties file was changed")


class KeygenConfig(FrozenModel):
    """Settings for generating and registering API keys."""

    properties_path: Path = Field(
        default=DEFAULT_PROPERTIES_PATH,
        description="Path to the application.properties file that holds the keys",
    )
    property_key: PropertyKey = Field(
        default=PropertyKey(DEFAULT_PROPERTY_KEY),
        description="Key of the comma-separated property that lists valid API keys",
    )
    token_length: TokenLength = Field(
        default=TokenLength(DEFAULT_TOKEN_LENGTH),
        description="Number of characters in each generated key",
    )
    entropy_source: EntropySourceKind = Field(
        default=EntropySourceKind.OS,
        description="Which operating system facility supplies random bytes",
    )
    entropy_device_path: Path = Field(
        default=DEFAULT_ENTROPY_DEVICE_PATH,
        description="Random device to read when entropy_source is DEVICE",
    )
    write_mode: WriteMode = Field(
        default=WriteMode.IN_PLACE,
        description="How the updated file is written back",
    )

    def merge_with(self, overrides: dict[str, Any]) -> Self:
        """Return a new config with the non-None values from overrides applied.

        Values are re-validated, so raw strings from the environment or CLI are
        converted to their field types.
        """
        updates = {name: value for name, value in overrides.items() if value is not None}
        if not updates:
            return self
        return type(self).model_validate({**self.model_dump(), **updates})
