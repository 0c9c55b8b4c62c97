from collections.abc import Mapping
from typing import Any
from typing import assert_never

import click
from click_option_group import optgroup
from loguru import logger

from tutorly.api_keygen.api import generate_key
from tutorly.api_keygen.api import register_new_key
from tutorly.api_keygen.cli.common_opts import CommonCliOptions
from tutorly.api_keygen.cli.common_opts import OutputOptions
from tutorly.api_keygen.cli.common_opts import add_common_options
from tutorly.api_keygen.cli.common_opts import setup_command_context
from tutorly.api_keygen.cli.output_helpers import emit_final_json
from tutorly.api_keygen.cli.output_helpers import write_human_line
from tutorly.api_keygen.data_types import KeyRegistrationResult
from tutorly.api_keygen.primitives import EntropySourceKind
from tutorly.api_keygen.primitives import OutputFormat
from tutorly.api_keygen.primitives import Token
from tutorly.api_keygen.primitives import UpdateOutcome
from tutorly.api_keygen.primitives import WriteMode


class GenerateCliOptions(CommonCliOptions):
    """Options passed from the CLI to the generate command."""

    length: int | None
    entropy_source: str | None
    entropy_device: str | None
    atomic: bool | None
    dry_run: bool


def _config_overrides(opts: GenerateCliOptions) -> Mapping[str, Any]:
    write_mode: WriteMode | None = None
    if opts.atomic is not None:
        write_mode = WriteMode.ATOMIC if opts.atomic else WriteMode.IN_PLACE
    return {
        "token_length": opts.length,
        "entropy_source": opts.entropy_source.upper() if opts.entropy_source is not None else None,
        "entropy_device_path": opts.entropy_device,
        "write_mode": write_mode,
    }


def _output_dry_run(token: Token, output_opts: OutputOptions) -> None:
    match output_opts.output_format:
        case OutputFormat.JSON:
            emit_final_json({"token": str(token), "is_registered": False})
        case OutputFormat.HUMAN:
            write_human_line("Generated API Key: {}", token)
        case _ as unreachable:
            assert_never(unreachable)


def _output_result(result: KeyRegistrationResult, output_opts: OutputOptions) -> None:
    update = result.update
    match output_opts.output_format:
        case OutputFormat.JSON:
            emit_final_json(
                {
                    "token": str(result.token),
                    "is_registered": True,
                    "properties_file": str(update.path),
                    "property_key": str(update.property_key),
                    "outcome": update.outcome.value,
                    "line_number": update.line_index + 1,
                }
            )
        case OutputFormat.HUMAN:
            write_human_line("Generated API Key: {}", result.token)
            if update.outcome == UpdateOutcome.LINE_APPENDED:
                write_human_line("API Key added to {} on a new {} line", update.path, update.property_key)
            else:
                write_human_line("API Key successfully added to {}", update.path)
        case _ as unreachable:
            assert_never(unreachable)


@click.command(name="generate")
@optgroup.group("Key")
@optgroup.option(
    "-n",
    "--length",
    type=click.IntRange(min=1),
    default=None,
    help="Number of characters in the generated key [default: 32]",
)
@optgroup.option(
    "--entropy-source",
    type=click.Choice([kind.value.lower() for kind in EntropySourceKind], case_sensitive=False),
    default=None,
    help="Source of random bytes: the OS API or a random device file [default: os]",
)
@optgroup.option(
    "--entropy-device",
    type=click.Path(dir_okay=False),
    default=None,
    help="Random device read by --entropy-source device [default: /dev/urandom]",
)
@optgroup.group("Behavior")
@optgroup.option(
    "--atomic/--in-place",
    default=None,
    help="Write through a temp file and rename instead of rewriting the file in place [default: in-place]",
)
@optgroup.option(
    "--dry-run",
    is_flag=True,
    help="Print a new key without adding it to the properties file",
)
@add_common_options
@click.pass_context
def generate(ctx: click.Context, **kwargs: Any) -> None:
    """Generate a new API key and add it to application.properties."""
    config, output_opts, opts = setup_command_context(
        ctx=ctx,
        command_class=GenerateCliOptions,
        config_overrides=_config_overrides,
    )
    logger.debug("Started generate command")

    if opts.dry_run:
        _output_dry_run(generate_key(config), output_opts)
        return

    result = register_new_key(config)
    _output_result(result, output_opts)
