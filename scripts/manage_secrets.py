"""Manage the application secret bundle in AWS Secrets Manager."""

from typing import Annotated

import typer
from botocore.exceptions import BotoCoreError, ClientError

from .lib.aws import get_secrets_client, get_session
from .lib.config import ConfigurationError, get_secrets_config
from .lib.console import ask, console, print_error, print_plain, print_warning
from .lib.secret_commands import COMMANDS, USAGE, SecretCommands, SecretsError
from .lib.secret_store import SecretStore

app = typer.Typer(help="Manage the application secret bundle in AWS Secrets Manager")


def print_usage() -> None:
    """Print the command summary."""
    console.print()
    print_plain(USAGE)
    console.print()


def build_commands(profile: str | None = None) -> SecretCommands:
    """Wire the command state machine to AWS and the terminal."""
    config = get_secrets_config(profile)
    session = get_session(config.aws_profile)
    store = SecretStore(
        get_secrets_client(session, config.aws_region),
        config.secret_name,
    )
    return SecretCommands(store, ask=ask, echo=print_plain)


@app.command()
def secrets(
    command: Annotated[
        str | None,
        typer.Argument(help="init | get | set | update | update-all | delete | help"),
    ] = None,
    args: Annotated[
        list[str] | None,
        typer.Argument(help="Command arguments (JSON for init, KEY [VALUE] otherwise)"),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing secret on init"),
    ] = False,
    plain: Annotated[
        bool,
        typer.Option("--plain", help="Print unmasked values on get"),
    ] = False,
    profile: Annotated[
        str | None,
        typer.Option("--profile", help="AWS CLI profile name (for SSO users)"),
    ] = None,
) -> None:
    """
    Manage the secret bundle for the current environment.

    The secret name defaults to APP_NAME/ENVIRONMENT/secrets and can be
    overridden with SECRET_NAME.
    """
    # Unknown commands never touch AWS
    if command not in COMMANDS:
        if command and command != "help":
            print_error(f"Unknown: {command}")
        print_usage()
        return

    try:
        commands = build_commands(profile)
        commands.dispatch(command, args or [], force=force, plain=plain)
    except (ConfigurationError, SecretsError, ValueError) as e:
        print_error(str(e))
        raise typer.Exit(1)
    except (ClientError, BotoCoreError) as e:
        print_error(str(e))
        raise typer.Exit(1)
    except (KeyboardInterrupt, EOFError):
        console.print()
        print_warning("Cancelled.")
        raise typer.Exit(130)


def main() -> None:
    """Entry point for the secrets script."""
    app()


if __name__ == "__main__":
    main()
