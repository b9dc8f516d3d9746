# tagdeploy/utils/git_repo.py
from pathlib import Path
from typing import Union

import git
from git.exc import InvalidGitRepositoryError, NoSuchPathError

from tagdeploy.models.errors import RepositoryError


def open_repository(path: Union[str, Path]) -> git.Repo:
    """Open the repository rooted exactly at `path` (parents are not searched)."""
    try:
        return git.Repo(path, search_parent_directories=False)
    except (InvalidGitRepositoryError, NoSuchPathError) as e:
        raise RepositoryError(f"Not a git repository: {path}") from e
