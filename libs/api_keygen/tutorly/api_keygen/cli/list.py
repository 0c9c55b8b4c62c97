from typing import Any
from typing import assert_never

import click
from loguru import logger

from tutorly.api_keygen.api import list_registered_keys
from tutorly.api_keygen.cli.common_opts import CommonCliOptions
from tutorly.api_keygen.cli.common_opts import add_common_options
from tutorly.api_keygen.cli.common_opts import setup_command_context
from tutorly.api_keygen.cli.output_helpers import emit_final_json
from tutorly.api_keygen.cli.output_helpers import write_human_line
from tutorly.api_keygen.primitives import OutputFormat


class ListCliOptions(CommonCliOptions):
    """Options passed from the CLI to the list command."""


@click.command(name="list")
@add_common_options
@click.pass_context
def list_command(ctx: click.Context, **kwargs: Any) -> None:
    """List the API keys the server will accept, one per line."""
    config, output_opts, _ = setup_command_context(ctx=ctx, command_class=ListCliOptions)

    keys = list_registered_keys(config)
    if not keys:
        logger.warning("No keys registered under {} in {}", config.property_key, config.properties_path)

    match output_opts.output_format:
        case OutputFormat.JSON:
            emit_final_json(
                {
                    "properties_file": str(config.properties_path),
                    "property_key": str(config.property_key),
                    "keys": list(keys),
                }
            )
        case OutputFormat.HUMAN:
            for key in keys:
                write_human_line(key)
        case _ as unreachable:
            assert_never(unreachable)
