# tagdeploy/services/packager.py
import logging
import os
import shutil
import tempfile
import zipfile
from pathlib import Path
from typing import Optional, Union

from tagdeploy.models.errors import PackageError

logger = logging.getLogger(__name__)


class Artifact:
    """A zip in a temporary file; removed on close() unless it was persisted."""

    def __init__(self, path: Path):
        self.path = path
        self._persisted: Optional[Path] = None

    def read_bytes(self) -> bytes:
        return (self._persisted or self.path).read_bytes()

    def persist(self, target: Union[str, Path]) -> Path:
        target = Path(target)
        try:
            shutil.move(str(self.path), str(target))
        except OSError as e:
            raise PackageError(f"Could not save artifact to {target}: {e}") from e
        self._persisted = target
        logger.info("Artifact saved to %s", target)
        return target

    def close(self) -> None:
        if self._persisted is not None:
            return
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove temporary artifact %s: %s", self.path, e)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


def package(bundle_path: Union[str, Path]) -> Artifact:
    """
    Zip a single bundle file as index<ext> at the archive root, which is
    where the Lambda handler "index.handler" looks for it.
    """
    bundle_path = Path(bundle_path)
    if not bundle_path.is_file():
        raise PackageError(f"Bundle not found: {bundle_path}")

    fd, tmp = tempfile.mkstemp(suffix=".zip", prefix="tagdeploy-")
    os.close(fd)
    zip_path = Path(tmp)
    try:
        with zipfile.ZipFile(zip_path, "w", zipfile.ZIP_DEFLATED) as zipf:
            zipf.write(bundle_path, arcname=f"index{bundle_path.suffix}")
    except (OSError, zipfile.BadZipFile) as e:
        zip_path.unlink(missing_ok=True)
        raise PackageError(f"Failed to package {bundle_path}: {e}") from e

    logger.info("Packaged %s into %s", bundle_path, zip_path)
    return Artifact(zip_path)
