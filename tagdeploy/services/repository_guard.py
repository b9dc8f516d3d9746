# tagdeploy/services/repository_guard.py
import logging
from typing import List

import git
from git.exc import GitCommandError

from tagdeploy.models.errors import DirtyTreeError, RepositoryError

logger = logging.getLogger(__name__)


class RepositoryGuard:
    """Refuses to go on unless HEAD describes exactly what is on disk."""

    def __init__(self, repo: git.Repo):
        self.repo = repo

    def modified_files(self) -> List[str]:
        # staged and unstaged changes to tracked files; untracked files don't count
        try:
            paths = {d.a_path for d in self.repo.index.diff(None)}
            if self.repo.head.is_valid():
                paths.update(d.a_path for d in self.repo.index.diff("HEAD"))
        except GitCommandError as e:
            raise RepositoryError(f"Could not read working tree status: {e}") from e
        return sorted(paths)

    def check_clean_tree(self) -> None:
        try:
            dirty = self.repo.is_dirty(index=True, working_tree=True, untracked_files=False)
        except GitCommandError as e:
            raise RepositoryError(f"Could not read working tree status: {e}") from e

        if dirty:
            files = self.modified_files()
            logger.debug("Uncommitted changes: %s", files)
            shown = ", ".join(files[:5]) + (" ..." if len(files) > 5 else "")
            raise DirtyTreeError(f"There are uncommitted files: {shown}" if files else "There are uncommitted files")
