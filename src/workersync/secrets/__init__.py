import logging
from typing import TYPE_CHECKING, Dict

from workersync import (
    DecryptionError,
    InvalidSecretName,
    PasswordMismatch,
    SecretAlreadyExists,
    SecretDecryptionError,
    UnknownSecret,
)

from .encryption import decrypt_secret, encrypt_secret

if TYPE_CHECKING:
    from workersync.manifest import Manifest

logger = logging.getLogger(__name__)


class SecretStore(object):
    """Bulk operations on the secrets of a manifest.

    All secrets of a manifest are encrypted with the same password. The
    store only ever switches the whole set between ciphertext and
    cleartext, never single entries.
    """

    def __init__(self, manifest: "Manifest"):
        self.manifest = manifest

    @property
    def secrets(self) -> Dict[str, str]:
        return self.manifest.secrets

    def decrypt(self, password: str):
        """Replace all ciphertexts of the manifest with their cleartext.

        The manifest is left untouched if any secret fails to decrypt.
        """
        if self.manifest.cleartext:
            raise RuntimeError("Secrets are already decrypted")
        if not self.secrets:
            return
        cleartext = {}
        for name, blob in self.secrets.items():
            try:
                cleartext[name] = decrypt_secret(password, blob)
            except DecryptionError as e:
                logger.debug("cannot decrypt secret '%s': %s", name, e)
                raise SecretDecryptionError.from_context(name) from None
        self.manifest.secrets = cleartext
        self.manifest.cleartext = True

    def encrypt(self, password: str):
        if not self.manifest.cleartext:
            raise RuntimeError("Secrets are not decrypted")
        self.manifest.secrets = {
            name: encrypt_secret(password, value)
            for name, value in self.secrets.items()
        }
        self.manifest.cleartext = False

    def check_update(self, name: str, overwrite: bool = False):
        if not name or not name.strip():
            raise InvalidSecretName.from_context(name)
        if name in self.secrets and not overwrite:
            raise SecretAlreadyExists.from_context(name)

    def add(self, name: str, value: str, password: str, overwrite=False):
        """Add or replace a secret and re-encrypt all secrets.

        The password must be the one the existing secrets are encrypted
        with.
        """
        self.check_update(name, overwrite)
        backup = dict(self.secrets)
        try:
            self.decrypt(password)
        except SecretDecryptionError:
            self.manifest.secrets = backup
            self.manifest.cleartext = False
            raise PasswordMismatch.from_context() from None
        if not self.manifest.cleartext:
            # There were no secrets yet.
            self.manifest.cleartext = True
        self.secrets[name] = value
        self.encrypt(password)

    def remove(self, name: str):
        if name not in self.secrets:
            raise UnknownSecret.from_context(name)
        del self.secrets[name]

    def reencrypt(self, password: str, new_password: str):
        if not self.secrets:
            return
        self.decrypt(password)
        self.encrypt(new_password)
