from typing import Any

import click

from tutorly.api_keygen.cli.generate import generate
from tutorly.api_keygen.cli.list import list_command


class DefaultCommandGroup(click.Group):
    """A click.Group that falls back to a default subcommand.

    When no subcommand is provided, or the first argument is not a known
    subcommand, the arguments are forwarded to `_default_command`. This keeps
    a bare `tutorly-keygen` behaving like a one-shot key generator.
    """

    _default_command: str = "generate"

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        if not ctx.resilient_parsing and (not args or self._is_subcommand_option(ctx, args[0])):
            args = [self._default_command] + args
        return super().parse_args(ctx, args)

    def _is_subcommand_option(self, ctx: click.Context, arg: str) -> bool:
        """Return True for an option flag that the group itself does not define (e.g. `--length`)."""
        if not arg.startswith("-"):
            return False
        group_option_names = {name for param in self.get_params(ctx) for name in param.opts + param.secondary_opts}
        return arg.split("=", 1)[0] not in group_option_names

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        if args and self.get_command(ctx, args[0]) is None:
            return super().resolve_command(ctx, [self._default_command] + args)
        return super().resolve_command(ctx, args)


@click.command(cls=DefaultCommandGroup)
@click.version_option(package_name="tutorly-keygen", prog_name="tutorly-keygen", message="%(prog)s %(version)s")
def cli(**kwargs: Any) -> None:
    """Generate API keys for the Tutorly backend and manage the keys it accepts."""


cli.add_command(generate)
cli.add_command(list_command)
cli.add_command(list_command, name="ls")


if __name__ == "__main__":
    cli()
