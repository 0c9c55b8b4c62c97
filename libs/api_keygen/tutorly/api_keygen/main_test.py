from pathlib import Path

from click.testing import CliRunner

from tutorly.api_keygen.main import cli


def test_bare_invocation_runs_generate_against_default_path(cli_runner: CliRunner, tmp_path: Path) -> None:
    # The autouse fixture runs every test from tmp_path, so the default relative path lands there.
    default_path = tmp_path / "src/main/resources/application.properties"
    default_path.parent.mkdir(parents=True)
    default_path.write_text("api.security.keys=abc\n")

    result = cli_runner.invoke(cli, [])

    assert result.exit_code == 0, result.output
    assert default_path.read_text().startswith("api.security.keys=abc,")


def test_options_without_subcommand_are_forwarded_to_generate(cli_runner: CliRunner, properties_path: Path) -> None:
    result = cli_runner.invoke(cli, ["-f", str(properties_path), "--length", "5"])

    assert result.exit_code == 0, result.output
    assert len(properties_path.read_text().splitlines()[4].rsplit(",", 1)[1]) == 5


def test_help_lists_commands(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "generate" in result.output
    assert "list" in result.output


def test_generate_help_shows_option_groups(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["generate", "--help"])

    assert result.exit_code == 0
    assert "--properties-file" in result.output
    assert "--atomic / --in-place" in result.output
    assert "--dry-run" in result.output
    assert "Common" in result.output
