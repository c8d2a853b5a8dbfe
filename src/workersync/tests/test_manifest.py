import json
import os

import mock
import pytest

from workersync import (
    CleartextManifestError,
    FileLockedError,
    InvalidManifest,
    ManifestDecodeError,
    ManifestNotFound,
    ManifestReadError,
    ManifestWriteError,
)
from workersync.conftest import SAMPLE_MANIFEST
from workersync.manifest import Manifest


def test_read_from_directory(project):
    manifest = Manifest.read(project)
    assert manifest.name == "my-worker"
    assert manifest.source_code_path == "./my-worker.ts"
    assert manifest.action == "BEFORE_DOWNLOAD"
    assert manifest.project_key == "a-project"
    assert manifest.enabled
    assert manifest.debug
    assert manifest.secrets == {}
    assert manifest.directory == project


def test_read_from_working_directory(project):
    os.chdir(project)
    assert Manifest.read().name == "my-worker"


def test_read_missing_manifest(tmp_path):
    with pytest.raises(ManifestNotFound) as e:
        Manifest.read(tmp_path)
    assert str(e.value) == f"missing manifest: {tmp_path / 'manifest.json'}"


@pytest.mark.parametrize(
    "content",
    [
        '{"name": "my-wor',  # partial write
        "",
        "[]",
        '{"secrets": ["a"]}',
        '{"secrets": {"a": 1}}',
    ],
)
def test_read_corrupt_manifest(tmp_path, content):
    (tmp_path / "manifest.json").write_text(content)
    with pytest.raises(ManifestDecodeError):
        Manifest.read(tmp_path)


def test_read_manifest_that_is_not_utf8(tmp_path):
    (tmp_path / "manifest.json").write_bytes(b'{"name": "\xff')
    with pytest.raises(ManifestDecodeError) as e:
        Manifest.read(tmp_path)
    assert "utf-8" in str(e.value)


def test_read_unreadable_manifest(tmp_path):
    (tmp_path / "manifest.json").mkdir()
    with pytest.raises(ManifestReadError) as e:
        Manifest.read(tmp_path)
    assert str(e.value).startswith(
        f"cannot read manifest {tmp_path / 'manifest.json'}: "
    )


def test_save_roundtrip_keeps_unknown_fields(project):
    data = dict(SAMPLE_MANIFEST, somethingNew={"x": 1})
    (project / "manifest.json").write_text(json.dumps(data))

    manifest = Manifest.read(project)
    manifest.secrets["s1"] = "ciphertext"
    manifest.save()

    saved = json.loads((project / "manifest.json").read_text())
    assert saved["somethingNew"] == {"x": 1}
    assert saved["secrets"] == {"s1": "ciphertext"}
    assert saved["filterCriteria"] == SAMPLE_MANIFEST["filterCriteria"]
    assert (project / "manifest.json").read_text().startswith('{\n  "')


def test_save_truncates_previous_content(project):
    manifest = Manifest.read(project)
    manifest.description = ""
    manifest.filter_criteria = None
    manifest.save()
    assert json.loads((project / "manifest.json").read_text())


def test_save_creates_manifest(tmp_path):
    Manifest(tmp_path, name="new-worker").save()
    assert Manifest.read(tmp_path).name == "new-worker"


def test_save_refuses_cleartext_secrets(project):
    manifest = Manifest.read(project)
    manifest.secrets = {"s1": "cleartext"}
    manifest.cleartext = True
    before = (project / "manifest.json").read_text()
    with pytest.raises(CleartextManifestError):
        manifest.save()
    assert (project / "manifest.json").read_text() == before


def test_save_to_missing_directory(tmp_path):
    manifest = Manifest(tmp_path / "missing", name="w")
    with pytest.raises(ManifestWriteError) as e:
        manifest.save()
    assert len(e.value.errors) == 1


def test_save_keeps_write_and_close_errors(project):
    manifest = Manifest.read(project)
    handle = mock.MagicMock()
    handle.write.side_effect = OSError("disk full")
    handle.close.side_effect = OSError("close failed")
    with mock.patch(
        "workersync.manifest.open", return_value=handle, create=True
    ):
        with mock.patch("fcntl.lockf"):
            with pytest.raises(ManifestWriteError) as e:
                manifest.save()
    assert [str(err) for err in e.value.errors] == [
        "disk full",
        "close failed",
    ]
    assert "disk full; close failed" in str(e.value)


def test_save_fails_if_locked(project):
    manifest = Manifest.read(project)
    with mock.patch("fcntl.lockf", side_effect=BlockingIOError()):
        with pytest.raises(FileLockedError):
            manifest.save()


@pytest.mark.parametrize(
    "attribute, message",
    [
        ("name", "missing name"),
        ("source_code_path", "missing source code path"),
        ("action", "missing action"),
    ],
)
def test_validate(project, attribute, message):
    manifest = Manifest.read(project)
    manifest.validate()
    setattr(manifest, attribute, "")
    with pytest.raises(InvalidManifest) as e:
        manifest.validate()
    assert str(e.value) == f"invalid manifest: {message}"


def test_read_source_code(project):
    manifest = Manifest.read(project)
    assert manifest.read_source_code() == (
        "export default async () => ({ status: 'SUCCESS' })"
    )


def test_read_missing_source_code(project):
    (project / "my-worker.ts").unlink()
    with pytest.raises(InvalidManifest) as e:
        Manifest.read(project).read_source_code()
    assert "cannot read source code" in str(e.value)


def test_unknown_field_is_rejected():
    with pytest.raises(TypeError):
        Manifest(sourceCodePath="x")
