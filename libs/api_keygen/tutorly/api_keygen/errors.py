from pathlib import Path

from click import ClickException


class BaseKeygenError(Exception):
    """Base exception for all keygen errors."""


class KeygenError(ClickException, BaseKeygenError):
    """Base exception for all user-facing keygen errors.

    Subclasses can set user_help_text to give the operator a hint on how to
    resolve the problem. Click prints the formatted message to stderr and
    exits with status 1.
    """

    user_help_text: str | None = None

    def format_message(self) -> str:
        if self.user_help_text:
            return str(self) + "  [" + self.user_help_text + "]"
        return str(self)


class EntropySourceUnavailableError(KeygenError):
    """Raised when random bytes cannot be obtained from the entropy source."""

    user_help_text = "No key was generated and no file was modified."

    def __init__(self, source_description: str, reason: str) -> None:
        self.source_description = source_description
        self.reason = reason
        super().__init__(f"Entropy source unavailable ({source_description}): {reason}")


class PropertiesFileError(KeygenError):
    """Base class for errors reading or writing the properties file."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(self._describe(path, reason))

    def _describe(self, path: Path, reason: str) -> str:
        return f"Properties file error for {path}: {reason}"


class FileUnreadableError(PropertiesFileError):
    """Raised when the properties file is missing or cannot be read."""

    user_help_text = "The file was not modified. Check --properties-file."

    def _describe(self, path: Path, reason: str) -> str:
        return f"Cannot read properties file {path}: {reason}"


class FileUnwritableError(PropertiesFileError):
    """Raised when the properties file cannot be written after a successful read."""

    user_help_text = "The new key was not saved. An in-place write may have left the file truncated."

    def _describe(self, path: Path, reason: str) -> str:
        return f"Cannot write properties file {path}: {reason}"


class ConfigParseError(KeygenError):
    """Raised when a config file or environment override is invalid."""
