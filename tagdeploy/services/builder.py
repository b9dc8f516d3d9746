# tagdeploy/services/builder.py
import logging
import subprocess
import sys
from typing import Optional, Sequence

from tagdeploy.models.errors import BuildError
from tagdeploy.services.config_loader import DEFAULT_BUILD_COMMAND

logger = logging.getLogger(__name__)


def build(command: Sequence[str] = DEFAULT_BUILD_COMMAND, cwd: Optional[str] = None) -> None:
    """Run the project's build and pass its output through to our stdout/stderr."""
    logger.info("Running build: %s", " ".join(command))
    try:
        result = subprocess.run(list(command), cwd=cwd, capture_output=True, text=True, errors="replace")
    except OSError as e:
        raise BuildError(f"Could not run {command[0]}: {e}") from e

    logger.debug("build exit status: %s", result.returncode)
    sys.stdout.write(result.stdout)
    sys.stderr.write(result.stderr)

    if result.returncode != 0:
        raise BuildError(f"{' '.join(command)} exited with status {result.returncode}")
