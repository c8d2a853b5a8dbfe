"""Compute the secret updates to send along with a worker."""

import json
from typing import Iterable, List, Mapping, Optional


class Secret(object):
    """One entry of a secrets update as consumed by the remote service."""

    def __init__(self, key: str, value: str = "", marked_for_removal=False):
        self.key = key
        self.value = value
        self.marked_for_removal = marked_for_removal

    @classmethod
    def addition(cls, key, value):
        return cls(key, value)

    @classmethod
    def removal(cls, key):
        return cls(key, marked_for_removal=True)

    def as_dict(self):
        return {
            "key": self.key,
            "value": "" if self.marked_for_removal else self.value,
            "markedForRemoval": self.marked_for_removal,
        }

    def __eq__(self, other):
        if not isinstance(other, Secret):
            return NotImplemented
        return self.as_dict() == other.as_dict()

    def __repr__(self):
        # Never show the value.
        return "<Secret {} markedForRemoval={}>".format(
            self.key, self.marked_for_removal
        )


def prepare_secrets_update(
    secrets: Mapping[str, str],
    remote_names: Optional[Iterable[str]] = None,
    enabled: bool = True,
) -> List[Secret]:
    """Diff the local cleartext `secrets` against the names the remote
    worker already knows.

    A secret known on both sides is sent as a removal followed by an
    addition so that the remote service recreates it with the local value.
    Remote names without a local counterpart are removed. `remote_names` is
    None for a worker that does not exist remotely yet.

    The order across different keys is not guaranteed.
    """
    if not enabled:
        return []

    pending = set(remote_names or ())
    updates = []
    for name, value in secrets.items():
        if name in pending:
            updates.append(Secret.removal(name))
            pending.discard(name)
        updates.append(Secret.addition(name, value))

    for name in pending:
        updates.append(Secret.removal(name))

    return updates


def dump_secrets_update(updates: List[Secret]) -> str:
    return json.dumps([secret.as_dict() for secret in updates], indent=2)
