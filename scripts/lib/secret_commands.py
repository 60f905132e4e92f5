"""
Secret bundle lifecycle commands.

The command logic only talks to three collaborators: a SecretStore, an
``ask`` callable returning one line of operator input, and an ``echo``
callable receiving one line of output. The CLI wires them to the terminal;
tests wire them to scripted lists.

State: a bundle either does not exist or exists. ``init`` creates it (or
overwrites it with --force); every other command requires it to exist and
rewrites it whole. ``delete`` removes a key, never the bundle.
"""

import json
import secrets
from collections.abc import Callable, Sequence

from .secret_store import SecretStore

PLACEHOLDER_SENTINEL = "TBD"
PLACEHOLDER_PREFIX = "TBD_"

KEEP_PROMPT = "Keep current value? [Y/n] or [s]how: "
NEW_VALUE_PROMPT = "New value: "
ENTER_VALUE_PROMPT = "Enter value: "

USAGE = (
    "COMMANDS: init JSON [--force] | get [--plain] | set K V | update K | "
    "update-all | delete K"
)

COMMANDS = ("init", "get", "set", "update", "update-all", "delete")


class SecretsError(Exception):
    """User-actionable secrets tool error."""

    pass


class SecretExistsError(SecretsError):
    """init was called on an existing bundle without --force."""

    pass


class InvalidSecretInputError(SecretsError):
    """Input to init is not a JSON object of strings."""

    pass


class SecretKeyNotFoundError(SecretsError):
    """The requested key is not in the bundle."""

    pass


class UsageError(SecretsError):
    """A command was called with missing arguments."""

    pass


def mask(value: str) -> str:
    """Show the first four characters of a value and hide the rest."""
    if not value:
        return "***"
    return value[:4] + "*" * max(0, len(value) - 4)


def is_placeholder(value: str) -> bool:
    """True for the sentinel and for generated placeholder tokens."""
    return value.startswith(PLACEHOLDER_SENTINEL)


def parse_bundle(raw: str) -> dict[str, str]:
    """
    Parse init input into a bundle.

    Raises:
        InvalidSecretInputError: If the input is not a JSON object of strings.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidSecretInputError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise InvalidSecretInputError("Secret JSON must be an object of key/value pairs")
    non_strings = [key for key, value in data.items() if not isinstance(value, str)]
    if non_strings:
        raise InvalidSecretInputError(f"Values must be strings: {', '.join(non_strings)}")
    return data


def replace_placeholders(bundle: dict[str, str]) -> dict[str, str]:
    """Replace every value equal to "TBD" with a distinct random token."""
    issued: set[str] = set()
    resolved = {}
    for key, value in bundle.items():
        if value == PLACEHOLDER_SENTINEL:
            token = f"{PLACEHOLDER_PREFIX}{secrets.token_urlsafe(10)}"
            while token in issued:
                token = f"{PLACEHOLDER_PREFIX}{secrets.token_urlsafe(10)}"
            issued.add(token)
            value = token
        resolved[key] = value
    return resolved


class SecretCommands:
    """Command state machine over one remote secret bundle."""

    def __init__(
        self,
        store: SecretStore,
        ask: Callable[[str], str],
        echo: Callable[[str], None],
    ):
        self.store = store
        self.ask = ask
        self.echo = echo

    def dispatch(
        self,
        command: str | None,
        args: Sequence[str] = (),
        force: bool = False,
        plain: bool = False,
    ) -> bool:
        """
        Run one command.

        Returns:
            False if the command is not recognized (nothing is run), else True.
        """
        if command == "init":
            self.init(self._arg(args, 0, "init JSON"), force=force)
        elif command == "get":
            self.get(plain=plain)
        elif command == "set":
            self.set(self._arg(args, 0, "set K V"), self._arg(args, 1, "set K V"))
        elif command == "update":
            self.update(self._arg(args, 0, "update K"))
        elif command == "update-all":
            self.update_all()
        elif command == "delete":
            self.delete(self._arg(args, 0, "delete K"))
        else:
            return False
        return True

    @staticmethod
    def _arg(args: Sequence[str], index: int, usage: str) -> str:
        if len(args) <= index:
            raise UsageError(f"Usage: {usage}")
        return args[index]

    def init(self, raw_json: str, force: bool = False) -> dict[str, str]:
        """Create the bundle, or overwrite it entirely with ``force``."""
        bundle = parse_bundle(raw_json)

        exists = self.store.exists()
        if exists and not force:
            raise SecretExistsError(
                f"Secret {self.store.secret_name} exists. Use --force to overwrite."
            )

        bundle = replace_placeholders(bundle)
        if exists:
            self.store.overwrite(bundle)
        else:
            self.store.create(bundle)
        self.echo(f"✓ {len(bundle)} keys")
        return bundle

    def get(self, plain: bool = False) -> None:
        """Print every key, masked unless ``plain``."""
        for key, value in self.store.read().items():
            self.echo(f"{key}: {value if plain else mask(value)}")

    def set(self, key: str, value: str) -> None:
        """Set one key and write the bundle back."""
        bundle = self.store.read()
        bundle[key] = value
        self.store.overwrite(bundle)
        self.echo(f"✓ {key}")

    def update(self, key: str) -> bool:
        """
        Interactively update one key.

        Returns:
            True if the bundle was written.
        """
        bundle = self.store.read()
        if key not in bundle:
            raise SecretKeyNotFoundError(f"Key not found: {key}")

        current = bundle[key]
        resolved = self.resolve_value(key, current)
        if resolved == current:
            return False
        bundle[key] = resolved
        self.store.overwrite(bundle)
        self.echo(f"✓ {key}")
        return True

    def update_all(self) -> bool:
        """
        Interactively walk every key; write once at the end if anything changed.

        Returns:
            True if the bundle was written.
        """
        bundle = self.store.read()
        updated = {key: self.resolve_value(key, value) for key, value in bundle.items()}
        changed = [key for key in bundle if updated[key] != bundle[key]]
        if not changed:
            return False
        self.store.overwrite(updated)
        self.echo(f"✓ {len(changed)} keys updated")
        return True

    def delete(self, key: str) -> None:
        """Remove one key and write the bundle back."""
        bundle = self.store.read()
        if key not in bundle:
            raise SecretKeyNotFoundError(f"Key not found: {key}")
        del bundle[key]
        self.store.overwrite(bundle)
        self.echo("✓ Deleted")

    def resolve_value(self, key: str, current: str) -> str:
        """Ask the operator to keep, replace or reveal one value."""
        self.echo("")
        self.echo(f"{key}: {mask(current)}")

        # Placeholders have nothing worth keeping; ask for the real value
        if is_placeholder(current):
            return self.ask(ENTER_VALUE_PROMPT).strip() or current

        while True:
            answer = self.ask(KEEP_PROMPT).strip().lower()
            if answer in ("", "y"):
                return current
            if answer == "n":
                return self.ask(NEW_VALUE_PROMPT).strip() or current
            if answer == "s":
                self.echo(f"Full: {current}")
