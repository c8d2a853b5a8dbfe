import json
import os

import pytest

from workersync._output import Output, TestBackend
from workersync.secrets.credentials import ENV_SECRETS_PASSWORD, Credentials

PASSWORD = "correct horse battery"
OTHER_PASSWORD = "incorrect donkey staple"

SAMPLE_MANIFEST = {
    "name": "my-worker",
    "description": "my worker description",
    "sourceCodePath": "./my-worker.ts",
    "action": "BEFORE_DOWNLOAD",
    "enabled": True,
    "debug": True,
    "projectKey": "a-project",
    "filterCriteria": {
        "artifactFilterCriteria": {"repoKeys": ["my-repo-local"]}
    },
    "secrets": {},
}


def no_prompt(message):
    raise AssertionError(f"unexpected prompt: {message!r}")


@pytest.fixture
def output():
    return Output(TestBackend())


@pytest.fixture
def credentials():
    """Credentials that never prompt and know the test password."""
    return Credentials({ENV_SECRETS_PASSWORD: PASSWORD}, no_prompt)


@pytest.fixture
def project(tmp_path):
    """A project directory with a sample manifest without secrets."""
    (tmp_path / "manifest.json").write_text(json.dumps(SAMPLE_MANIFEST))
    (tmp_path / "my-worker.ts").write_text(
        "export default async () => ({ status: 'SUCCESS' })"
    )
    return tmp_path


@pytest.fixture(autouse=True)
def ensure_workingdir():
    working_dir = os.getcwd()
    yield
    os.chdir(working_dir)
