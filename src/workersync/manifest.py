"""The local description of a worker: `manifest.json`."""

import fcntl
import json
import logging
import os
import pathlib
from typing import Dict

from workersync import (
    CleartextManifestError,
    FileLockedError,
    InvalidManifest,
    ManifestDecodeError,
    ManifestNotFound,
    ManifestReadError,
    ManifestWriteError,
)

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "manifest.json"

# attribute name -> JSON key
FIELDS = {
    "name": "name",
    "description": "description",
    "source_code_path": "sourceCodePath",
    "action": "action",
    "enabled": "enabled",
    "debug": "debug",
    "project_key": "projectKey",
    "application": "application",
    "filter_criteria": "filterCriteria",
}


def manifest_path(directory=None) -> pathlib.Path:
    if directory is None:
        directory = os.getcwd()
    return pathlib.Path(directory) / MANIFEST_FILENAME


class Manifest(object):
    """A worker manifest.

    `secrets` maps secret names to ciphertext blobs. After
    `SecretStore.decrypt()` the values are cleartext and `cleartext` is
    set; such a manifest cannot be saved until it has been encrypted again.
    """

    name = ""
    description = ""
    source_code_path = ""
    action = ""
    enabled = False
    debug = False
    project_key = ""
    application = ""
    filter_criteria = None

    def __init__(self, directory=None, **kw):
        self.directory = pathlib.Path(directory or os.getcwd())
        self.secrets: Dict[str, str] = {}
        self.cleartext = False
        # Fields we do not know about survive a read/save cycle.
        self.extra: Dict = {}
        for attribute, value in kw.items():
            if attribute not in FIELDS and attribute != "secrets":
                raise TypeError(f"unknown manifest field {attribute!r}")
            setattr(self, attribute, value)

    @property
    def path(self) -> pathlib.Path:
        return manifest_path(self.directory)

    @classmethod
    def from_dict(cls, data: Dict, directory=None) -> "Manifest":
        data = dict(data)
        self = cls(directory)
        for attribute, key in FIELDS.items():
            if key in data:
                setattr(self, attribute, data.pop(key))
        self.secrets = dict(data.pop("secrets", None) or {})
        self.extra = data
        return self

    def as_dict(self) -> Dict:
        data = dict(self.extra)
        for attribute, key in FIELDS.items():
            value = getattr(self, attribute)
            if key == "filterCriteria" and value is None:
                continue
            data[key] = value
        data["secrets"] = dict(self.secrets)
        return data

    @classmethod
    def read(cls, directory=None) -> "Manifest":
        path = manifest_path(directory)
        logger.debug("Reading manifest from %s", path)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise ManifestNotFound.from_context(path)
        except UnicodeDecodeError as e:
            raise ManifestDecodeError.from_context(path, e)
        except OSError as e:
            raise ManifestReadError.from_context(path, e)
        try:
            data = json.loads(content)
        except ValueError as e:
            raise ManifestDecodeError.from_context(path, e)
        if not isinstance(data, dict):
            raise ManifestDecodeError.from_context(
                path, "expected a JSON object"
            )
        secrets = data.get("secrets")
        if secrets is not None and not (
            isinstance(secrets, dict)
            and all(isinstance(v, str) for v in secrets.values())
        ):
            raise ManifestDecodeError.from_context(
                path, "secrets must map names to strings"
            )
        return cls.from_dict(data, path.parent)

    def save(self, directory=None):
        """Write the manifest while holding an exclusive lock on it.

        Errors from writing and from closing the file are both reported on
        the raised `ManifestWriteError`.
        """
        path = manifest_path(directory or self.directory)
        if self.cleartext:
            raise CleartextManifestError.from_context(path)
        content = json.dumps(self.as_dict(), indent=2) + "\n"

        logger.debug("Writing manifest to %s", path)
        try:
            f = open(path, "a", encoding="utf-8")
        except OSError as e:
            raise ManifestWriteError.from_context(path, [e])

        errors = []
        try:
            try:
                fcntl.lockf(f, fcntl.LOCK_EX | fcntl.LOCK_NB)
            except BlockingIOError:
                raise FileLockedError.from_context(path)
            f.seek(0)
            f.truncate()
            f.write(content)
            f.flush()
        except OSError as e:
            errors.append(e)
        finally:
            try:
                f.close()
            except OSError as e:
                errors.append(e)
        if errors:
            raise ManifestWriteError.from_context(path, errors)

    def validate(self):
        if not self.name:
            raise InvalidManifest.from_context("missing name")
        if not self.source_code_path:
            raise InvalidManifest.from_context("missing source code path")
        if not self.action:
            raise InvalidManifest.from_context("missing action")

    def read_source_code(self) -> str:
        path = self.directory / self.source_code_path
        logger.debug("Reading source code from %s", path)
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise InvalidManifest.from_context(
                f"cannot read source code {path}: {e}"
            )

