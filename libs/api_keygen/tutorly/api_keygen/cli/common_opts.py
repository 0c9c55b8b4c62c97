from collections.abc import Callable
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from typing import TypeVar

import click
from click_option_group import optgroup

from tutorly.api_keygen.config import load_config
from tutorly.api_keygen.data_types import FrozenModel
from tutorly.api_keygen.data_types import KeygenConfig
from tutorly.api_keygen.logging import setup_logging
from tutorly.api_keygen.primitives import LogLevel
from tutorly.api_keygen.primitives import OutputFormat

COMMON_OPTIONS_GROUP_NAME = "Common"

TCommandOptions = TypeVar("TCommandOptions", bound="CommonCliOptions")
TDecorated = TypeVar("TDecorated", bound=Callable[..., Any])


class CommonCliOptions(FrozenModel):
    """Base class for the options added by @add_common_options.

    Command-specific option classes inherit from this class. Defaults and help
    text live on the click options, not here.
    """

    output_format: str
    quiet: bool
    log_level: str
    config_path: str | None
    properties_file: str | None
    property_key: str | None


class OutputOptions(FrozenModel):
    """How command results and diagnostics are presented."""

    output_format: OutputFormat
    console_level: LogLevel


def add_common_options(command: TDecorated) -> TDecorated:
    """Decorator to add the options shared by every command.

    Adds the following options in the "Common" option group:
    - --properties-file: The application.properties file to operate on
    - --property-key: The property holding the comma-separated keys
    - --config: TOML config file
    - --format: Output format (human/json)
    - --log-level: Diagnostic verbosity on stderr
    - -q, --quiet: Suppress diagnostics
    """
    # Decorators apply bottom to top, so the group header is added last.
    command = optgroup.option("-q", "--quiet", is_flag=True, help="Suppress all diagnostic output")(command)
    command = optgroup.option(
        "--log-level",
        type=click.Choice([level.value for level in LogLevel], case_sensitive=False),
        default=LogLevel.INFO.value,
        show_default=True,
        help="Verbosity of diagnostics written to stderr",
    )(command)
    command = optgroup.option(
        "--format",
        "output_format",
        type=click.Choice(["human", "json"], case_sensitive=False),
        default="human",
        show_default=True,
        help="Output format for command results",
    )(command)
    command = optgroup.option(
        "--config",
        "config_path",
        type=click.Path(dir_okay=False),
        default=None,
        help="TOML config file [default: $TUTORLY_KEYGEN_CONFIG if set]",
    )(command)
    command = optgroup.option(
        "--property-key",
        default=None,
        help="Property that lists the valid API keys [default: api.security.keys]",
    )(command)
    command = optgroup.option(
        "-f",
        "--properties-file",
        type=click.Path(dir_okay=False),
        default=None,
        help="application.properties file to update [default: src/main/resources/application.properties]",
    )(command)
    command = optgroup.group(COMMON_OPTIONS_GROUP_NAME)(command)
    return command


def parse_output_options(output_format: str, quiet: bool, log_level: str) -> OutputOptions:
    """Parse output-related CLI options."""
    console_level = LogLevel.NONE if quiet else LogLevel(log_level.upper())
    return OutputOptions(
        output_format=OutputFormat(output_format.upper()),
        console_level=console_level,
    )


def setup_command_context(
    ctx: click.Context,
    command_class: type[TCommandOptions],
    config_overrides: Callable[[TCommandOptions], Mapping[str, Any]] | None = None,
) -> tuple[KeygenConfig, OutputOptions, TCommandOptions]:
    """Parse options, set up logging and load the layered config for a command.

    config_overrides maps the parsed command options onto KeygenConfig field
    names; None values leave the lower-precedence setting in place.
    """
    opts = command_class(**ctx.params)

    output_opts = parse_output_options(opts.output_format, opts.quiet, opts.log_level)
    setup_logging(output_opts.console_level)

    cli_overrides: dict[str, Any] = {
        "properties_path": Path(opts.properties_file) if opts.properties_file is not None else None,
        "property_key": opts.property_key,
    }
    if config_overrides is not None:
        cli_overrides.update(config_overrides(opts))

    config_path = Path(opts.config_path) if opts.config_path is not None else None
    config = load_config(config_path=config_path, cli_overrides=cli_overrides)

    return config, output_opts, opts
