import io
import zipfile

import pytest

from tagdeploy.models.errors import PackageError
from tagdeploy.services.packager import package


def test_bundle_is_zipped_as_index(tmp_path):
    bundle = tmp_path / "dist" / "main.bundle.js"
    bundle.parent.mkdir()
    bundle.write_text("exports.handler = async () => 42;\n")

    with package(bundle) as artifact:
        data = artifact.read_bytes()

    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        assert zf.namelist() == ["index.js"]
        assert zf.read("index.js") == b"exports.handler = async () => 42;\n"


def test_extension_follows_the_bundle(tmp_path):
    bundle = tmp_path / "handler.mjs"
    bundle.write_text("export const handler = async () => 1;\n")

    with package(bundle) as artifact:
        with zipfile.ZipFile(io.BytesIO(artifact.read_bytes())) as zf:
            assert zf.namelist() == ["index.mjs"]


def test_missing_bundle_raises(tmp_path):
    with pytest.raises(PackageError):
        package(tmp_path / "dist" / "index.js")


def test_temporary_zip_is_removed_on_close(tmp_path):
    bundle = tmp_path / "index.js"
    bundle.write_text("//\n")

    artifact = package(bundle)
    assert artifact.path.exists()
    artifact.close()
    assert not artifact.path.exists()


def test_persisted_zip_survives_close(tmp_path):
    bundle = tmp_path / "index.js"
    bundle.write_text("//\n")
    target = tmp_path / "api.zip"

    with package(bundle) as artifact:
        artifact.persist(target)
        data = artifact.read_bytes()

    assert target.exists()
    assert target.read_bytes() == data
    assert zipfile.is_zipfile(target)


def test_close_logs_instead_of_raising_when_unlink_fails(tmp_path, monkeypatch, caplog):
    bundle = tmp_path / "index.js"
    bundle.write_text("//\n")
    artifact = package(bundle)

    def locked(self, missing_ok=False):
        raise PermissionError(13, "Permission denied", str(self))

    with monkeypatch.context() as m:
        m.setattr(type(artifact.path), "unlink", locked)
        artifact.close()

    assert "Could not remove temporary artifact" in caplog.text
    artifact.path.unlink()
