import os.path
from typing import List

with open(os.path.dirname(__file__) + "/version.txt") as f:
    __version__ = f.read().strip()


class ReportingException(Exception):
    """Exceptions that support user-readable reporting."""

    def __str__(self):
        raise NotImplementedError()

    def report(self, output):
        output.error(str(self))


class FileLockedError(ReportingException):
    """A file is already locked and we do not want to block."""

    filename: str

    @classmethod
    def from_context(cls, filename):
        self = cls()
        self.filename = str(filename)
        return self

    def __str__(self):
        return "File already locked: {}".format(self.filename)


class InvalidPassword(ReportingException):
    """The secrets password does not satisfy the password policy."""

    minimum: int
    length: int

    @classmethod
    def from_context(cls, minimum, length):
        self = cls()
        self.minimum = minimum
        self.length = length
        return self

    def __str__(self):
        return (
            f"a secret should have a minimum length of {self.minimum}, "
            f"got {self.length}"
        )


class PasswordConfirmationFailed(ReportingException):
    """Two entries of a new password did not match."""

    @classmethod
    def from_context(cls):
        return cls()

    def __str__(self):
        return "passwords do not match"


class InvalidSecretName(ReportingException):
    """A secret name was empty or otherwise unusable."""

    name: str

    @classmethod
    def from_context(cls, name):
        self = cls()
        self.name = name
        return self

    def __str__(self):
        return f"invalid secret name '{self.name}'"


class DecryptionError(ReportingException):
    """A single ciphertext blob could not be decrypted.

    Wrong passwords, corrupted and tampered blobs share one message. Only
    truncated blobs get their own, detected before any key is derived.
    """

    message: str = "cannot decrypt secret value"

    @classmethod
    def from_context(cls, message=None):
        self = cls()
        if message is not None:
            self.message = message
        return self

    def __str__(self):
        return self.message


class SecretDecryptionError(ReportingException):
    """A named secret of a manifest could not be decrypted."""

    name: str

    @classmethod
    def from_context(cls, name):
        self = cls()
        self.name = name
        return self

    def __str__(self):
        return (
            f"cannot decrypt secret '{self.name}', please check the manifest"
        )


class PasswordMismatch(ReportingException):
    """Existing secrets are encrypted with another password."""

    @classmethod
    def from_context(cls):
        return cls()

    def __str__(self):
        return (
            "others secrets are encrypted with a different password, "
            "please use the same one"
        )


class SecretAlreadyExists(ReportingException):
    """A secret would be overwritten without permission."""

    name: str

    @classmethod
    def from_context(cls, name):
        self = cls()
        self.name = name
        return self

    def __str__(self):
        return f"{self.name} already exists, use --edit to overwrite"


class UnknownSecret(ReportingException):
    """A secret that does not exist in the manifest was referenced."""

    name: str

    @classmethod
    def from_context(cls, name):
        self = cls()
        self.name = name
        return self

    def __str__(self):
        return f"unknown secret '{self.name}'"


class CleartextManifestError(ReportingException):
    """A manifest holding decrypted secrets was about to be persisted."""

    path: str

    @classmethod
    def from_context(cls, path):
        self = cls()
        self.path = str(path)
        return self

    def __str__(self):
        return f"refusing to write cleartext secrets to {self.path}"


class ManifestNotFound(ReportingException):
    """There is no manifest in the project directory."""

    path: str

    @classmethod
    def from_context(cls, path):
        self = cls()
        self.path = str(path)
        return self

    def __str__(self):
        return f"missing manifest: {self.path}"


class ManifestReadError(ReportingException):
    """The manifest exists but cannot be read."""

    path: str
    error: str

    @classmethod
    def from_context(cls, path, error):
        self = cls()
        self.path = str(path)
        self.error = error.strerror or str(error)
        return self

    def __str__(self):
        return f"cannot read manifest {self.path}: {self.error}"


class ManifestDecodeError(ReportingException):
    """The manifest exists but is not valid JSON (e.g. a partial write)."""

    path: str
    error: str

    @classmethod
    def from_context(cls, path, error):
        self = cls()
        self.path = str(path)
        self.error = str(error)
        return self

    def __str__(self):
        return f"cannot parse manifest {self.path}: {self.error}"

    def report(self, output):
        output.error("Cannot parse manifest")
        output.tabular("manifest", self.path, red=True)
        output.tabular("message", self.error, separator=":\n")


class ManifestWriteError(ReportingException):
    """Writing the manifest failed.

    Both the write and the close of the manifest file may fail. All errors
    are kept in `errors`, in the order they happened.
    """

    path: str
    errors: List[Exception]

    @classmethod
    def from_context(cls, path, errors):
        self = cls()
        self.path = str(path)
        self.errors = list(errors)
        return self

    def __str__(self):
        return "cannot write manifest {}: {}".format(
            self.path, "; ".join(str(e) for e in self.errors)
        )

    def report(self, output):
        output.error("Cannot write manifest")
        output.tabular("manifest", self.path, red=True)
        for error in self.errors:
            output.tabular("error", str(error))


class InvalidManifest(ReportingException):
    """The manifest misses mandatory fields."""

    reason: str

    @classmethod
    def from_context(cls, reason):
        self = cls()
        self.reason = reason
        return self

    def __str__(self):
        return f"invalid manifest: {self.reason}"


class InvalidRemoteWorker(ReportingException):
    """The remote worker details could not be understood."""

    reason: str

    @classmethod
    def from_context(cls, reason):
        self = cls()
        self.reason = reason
        return self

    def __str__(self):
        return f"invalid remote worker details: {self.reason}"
