# tagdeploy/services/version_ledger.py
from __future__ import annotations

import logging
from typing import Iterator

import git
from git.exc import GitCommandError

from tagdeploy.models.deployment import VersionMarker
from tagdeploy.models.errors import LedgerError, RepositoryError

logger = logging.getLogger(__name__)


class VersionLedger:
    """
    Deployment ledger kept as lightweight git tags.

    A tag "<function>@<version>" on a commit says that version of the
    function was published from that commit. Only tags pointing directly at
    HEAD's commit are considered; tags on ancestors say nothing about HEAD.
    """

    def __init__(self, repo: git.Repo):
        self.repo = repo

    def _head_sha(self) -> str:
        try:
            return self.repo.head.commit.hexsha
        except ValueError as e:
            # unborn branch: nothing committed yet
            raise RepositoryError(f"Repository has no commits: {e}") from e

    def list_markers_for_current_commit(self) -> Iterator[VersionMarker]:
        """
        Yield every marker tagged on HEAD's commit. Every call starts a new
        scan; order is whatever git lists.
        """
        head = self._head_sha()
        for tag in self.repo.tags:
            # annotated tags point at a tag object, not the commit
            if tag.object.hexsha != head:
                continue
            marker = VersionMarker.parse(tag.name)
            if marker is not None:
                yield marker

    def is_already_deployed(self, function_name: str) -> bool:
        return any(m.function_name == function_name for m in self.list_markers_for_current_commit())

    def record(self, function_name: str, version: str) -> VersionMarker:
        marker = VersionMarker(function_name=function_name, version=version)
        try:
            self.repo.create_tag(marker.tag_name, ref="HEAD")
        except (GitCommandError, OSError, ValueError) as e:
            raise LedgerError(f"Could not create tag {marker.tag_name}: {e}") from e
        logger.info("Recorded deployment tag %s at %s", marker.tag_name, self._head_sha()[:12])
        return marker
