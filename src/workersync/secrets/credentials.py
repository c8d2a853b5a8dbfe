"""Where secrets passwords and secret values come from."""

import getpass
import os
from typing import Callable, Mapping, Optional

from workersync import InvalidPassword, PasswordConfirmationFailed

ENV_SECRETS_PASSWORD = "WORKERSYNC_SECRETS_PASSWORD"
ENV_ADD_SECRET_VALUE = "WORKERSYNC_ADD_SECRET_VALUE"

MINIMUM_PASSWORD_LENGTH = 12


def validate_password(password: str):
    if len(password) < MINIMUM_PASSWORD_LENGTH:
        raise InvalidPassword.from_context(
            MINIMUM_PASSWORD_LENGTH, len(password)
        )


class Credentials(object):
    """Provide the secrets password and new secret values.

    Values are looked up in `environ` first and fall back to a masked
    prompt. Nothing is cached: every call asks again so that passwords only
    live as long as the operation that needs them.
    """

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        prompt: Callable[[str], str] = getpass.getpass,
    ):
        self.environ = os.environ if environ is None else environ
        self.prompt = prompt

    def password(self, message: str = "Password: ") -> str:
        password = self.environ.get(ENV_SECRETS_PASSWORD)
        if password is None:
            password = self.prompt(message)
        validate_password(password)
        return password

    def new_password(self, message: str = "New password: ") -> str:
        """Ask for a replacement password, twice."""
        password = self.prompt(message)
        validate_password(password)
        if self.prompt("Repeat new password: ") != password:
            raise PasswordConfirmationFailed.from_context()
        return password

    def secret_value(self, message: str = "Value: ") -> str:
        value = self.environ.get(ENV_ADD_SECRET_VALUE)
        if value is None:
            value = self.prompt(message)
        return value
