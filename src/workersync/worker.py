"""What the remote service tells us about a deployed worker."""

import json
from typing import Dict, Optional, Set

from workersync import InvalidRemoteWorker


class WorkerDetails(object):
    """A worker as returned by the remote service.

    The remote service never returns secret values, only their names.
    """

    def __init__(self, key, project_key="", secret_names=()):
        self.key = key
        self.project_key = project_key
        self.secret_names: Set[str] = set(secret_names)

    @classmethod
    def from_dict(cls, data: Dict) -> "WorkerDetails":
        if not isinstance(data, dict):
            raise InvalidRemoteWorker.from_context("expected a JSON object")
        key = data.get("key")
        if not key:
            raise InvalidRemoteWorker.from_context("missing key")
        names = set()
        for secret in data.get("secrets") or ():
            if not isinstance(secret, dict) or not secret.get("key"):
                raise InvalidRemoteWorker.from_context(
                    "secrets must be objects with a key"
                )
            names.add(secret["key"])
        return cls(key, data.get("projectKey") or "", names)

    @classmethod
    def from_json(cls, content: str) -> Optional["WorkerDetails"]:
        """Parse the worker details.

        Empty content or a JSON `null` means the worker does not exist
        remotely yet and returns None.
        """
        if not content.strip():
            return None
        try:
            data = json.loads(content)
        except ValueError as e:
            raise InvalidRemoteWorker.from_context(str(e))
        if data is None:
            return None
        return cls.from_dict(data)

    def key_with_project(self) -> str:
        project_key = self.project_key.strip()
        if project_key and not self.key.startswith(project_key + "-"):
            return f"{project_key}-{self.key}"
        return self.key


def remote_secret_names(worker: Optional[WorkerDetails]) -> Set[str]:
    if worker is None:
        return set()
    return set(worker.secret_names)
