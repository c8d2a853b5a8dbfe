"""Secret operations on the manifest of a worker project."""

import logging
from typing import List, Optional

from workersync import InvalidRemoteWorker
from workersync.manifest import Manifest
from workersync.worker import WorkerDetails, remote_secret_names

from . import SecretStore
from .credentials import Credentials
from .update import Secret, dump_secrets_update, prepare_secrets_update

logger = logging.getLogger(__name__)


def summary(output, directory=None, **kw):
    """List the secrets of the manifest. Values are never shown."""
    manifest = Manifest.read(directory)
    output.line(manifest.name or "(unnamed worker)")
    output.line("\t secrets")
    for name in sorted(manifest.secrets):
        output.line(f"\t\t- {name}")
    if not manifest.secrets:
        output.line("\t\t(none)")
    return 0


def add(
    name: str,
    output,
    credentials: Credentials,
    edit: bool = False,
    directory=None,
    **kw,
):
    """Add a secret to the manifest, or replace it if `edit` is set.

    All secrets are decrypted first to make sure they share the given
    password, then re-encrypted together.
    """
    manifest = Manifest.read(directory)
    manifest.validate()

    store = SecretStore(manifest)
    store.check_update(name, overwrite=edit)

    password = credentials.password("Secrets Password: ")
    value = credentials.secret_value("Value: ")

    store.add(name, value, password, overwrite=edit)
    manifest.save()
    output.step("secrets", f"Secret '{name}' saved")
    return 0


def remove(name: str, output, directory=None, **kw):
    """Remove a secret from the manifest.

    The remote copy is removed on the next deployment.
    """
    manifest = Manifest.read(directory)
    SecretStore(manifest).remove(name)
    manifest.save()
    output.step("secrets", f"Secret '{name}' removed")
    return 0


def reencrypt(output, credentials: Credentials, directory=None, **kw):
    """Re-encrypt all secrets with a new password."""
    manifest = Manifest.read(directory)
    if not manifest.secrets:
        output.step("secrets", "No secrets to re-encrypt")
        return 0
    password = credentials.password("Current Secrets Password: ")
    new_password = credentials.new_password()
    SecretStore(manifest).reencrypt(password, new_password)
    manifest.save()
    output.step(
        "secrets", f"Re-encrypted {len(manifest.secrets)} secret(s)"
    )
    return 0


def prepare_update(
    manifest: Manifest,
    credentials: Credentials,
    worker: Optional[WorkerDetails] = None,
    enabled: bool = True,
) -> List[Secret]:
    """Decrypt the manifest secrets and compute the update for `worker`.

    The manifest keeps its secrets in cleartext afterwards and must not be
    saved; it is meant to be thrown away once the update has been sent.
    """
    if not enabled:
        return []
    if manifest.secrets:
        password = credentials.password("Secrets Password: ")
        SecretStore(manifest).decrypt(password)
    return prepare_secrets_update(
        manifest.secrets, remote_secret_names(worker)
    )


def read_remote_worker(
    remote: Optional[str], stdin
) -> Optional[WorkerDetails]:
    if remote is None:
        return None
    if remote == "-":
        return WorkerDetails.from_json(stdin.read())
    try:
        with open(remote, encoding="utf-8") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise InvalidRemoteWorker.from_context(f"cannot read {remote}: {e}")
    return WorkerDetails.from_json(content)


def plan(
    output,
    credentials: Credentials,
    stdin,
    remote: Optional[str] = None,
    no_secrets: bool = False,
    json: bool = False,
    directory=None,
    **kw,
):
    """Show the secret updates a deployment of the manifest would send.

    `remote` names a file holding the remote worker details as JSON, `-`
    reads them from `stdin`. Without it the worker is considered new.
    """
    manifest = Manifest.read(directory)
    manifest.validate()
    source_code = manifest.read_source_code()
    worker = read_remote_worker(remote, stdin)
    if worker is None:
        logger.debug(
            "No remote worker given, assuming '%s' is new", manifest.name
        )
        key = WorkerDetails(
            manifest.name, manifest.project_key or ""
        ).key_with_project()
    else:
        key = worker.key_with_project()

    updates = prepare_update(manifest, credentials, worker, not no_secrets)

    if json:
        output.line(dump_secrets_update(updates))
        return 0

    output.section(f"Secrets update for {key}")
    output.tabular(
        "source",
        f"{manifest.source_code_path} ({len(source_code)} characters)",
    )
    if no_secrets:
        output.annotate("Secrets are not propagated.")
    for secret in updates:
        operation = "remove" if secret.marked_for_removal else "set"
        output.tabular(operation, secret.key)
    if not updates:
        output.annotate("(no changes)")
    return 0
