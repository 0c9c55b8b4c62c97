from pathlib import Path

from pydantic import Field

from tutorly.api_keygen.key_generator import EntropySource
from tutorly.api_keygen.key_generator import require_exact_length

SAMPLE_PROPERTIES_LINES: tuple[str, ...] = (
    "# Tutorly backend configuration",
    "spring.datasource.url=jdbc:postgresql://localhost:5432/tutorly",
    "spring.datasource.username=tutorly",
    "",
    "api.security.keys=abc",
    "server.port=8443",
)


class FixedEntropySource(EntropySource):
    """Deterministic entropy source for tests: always returns a prefix of `data`."""

    data: bytes = Field(description="Bytes handed out by read()")

    def describe(self) -> str:
        return "fixed test bytes"

    def read(self, num_bytes: int) -> bytes:
        return require_exact_length(self, self.data[:num_bytes], num_bytes)


def write_properties_lines(path: Path, lines: tuple[str, ...]) -> Path:
    """Write lines to path with a newline after each one and return the path."""
    path.write_bytes("".join(line + "\n" for line in lines).encode("utf-8"))
    return path
