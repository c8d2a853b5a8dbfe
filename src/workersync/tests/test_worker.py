import pytest

from workersync import InvalidRemoteWorker
from workersync.worker import WorkerDetails, remote_secret_names


def test_from_json_collects_secret_names():
    worker = WorkerDetails.from_json(
        '{"key": "w", "projectKey": "p",'
        ' "secrets": [{"key": "a"}, {"key": "b", "value": ""}]}'
    )
    assert worker.key == "w"
    assert worker.project_key == "p"
    assert remote_secret_names(worker) == {"a", "b"}


def test_worker_without_secrets():
    worker = WorkerDetails.from_json('{"key": "w", "secrets": null}')
    assert remote_secret_names(worker) == set()


@pytest.mark.parametrize("content", ["", "  \n", "null"])
def test_missing_worker(content):
    assert WorkerDetails.from_json(content) is None
    assert remote_secret_names(None) == set()


@pytest.mark.parametrize(
    "content",
    ["{", "[]", '{"secrets": []}', '{"key": "w", "secrets": ["a"]}'],
)
def test_invalid_worker(content):
    with pytest.raises(InvalidRemoteWorker):
        WorkerDetails.from_json(content)


@pytest.mark.parametrize(
    "key, project_key, expected",
    [
        ("w", "", "w"),
        ("w", "p", "p-w"),
        ("p-w", "p", "p-w"),
        ("w", "  ", "w"),
    ],
)
def test_key_with_project(key, project_key, expected):
    assert WorkerDetails(key, project_key).key_with_project() == expected
