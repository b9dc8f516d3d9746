# tagdeploy/services/orchestrator.py
from __future__ import annotations

import logging
from datetime import timedelta
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

import boto3

from tagdeploy.models.deployment import DeployableFunction, DeployResult
from tagdeploy.models.errors import (
    AlreadyDeployedError,
    BuildError,
    DirtyTreeError,
    LedgerError,
    PackageError,
    PartialFailure,
    PublishError,
    RepositoryError,
)
from tagdeploy.models.state import AbortReason, DeployOutcome, DeployState
from tagdeploy.services import builder, packager
from tagdeploy.services.config_loader import DEFAULT_BUILD_COMMAND
from tagdeploy.services.function_publisher import FunctionPublisher
from tagdeploy.services.repository_guard import RepositoryGuard
from tagdeploy.services.version_gc import VersionGarbageCollector
from tagdeploy.services.version_ledger import VersionLedger
from tagdeploy.utils.aws_clients import lambda_client
from tagdeploy.utils.git_repo import open_repository

logger = logging.getLogger(__name__)


class DeploymentOrchestrator:
    """
    Runs one deploy of one function:

        guard -> idempotency check -> [build] -> package -> publish
              -> record tag -> garbage-collect old versions

    Anything that fails before publish leaves Lambda untouched and ends in
    ABORTED. Once a version is published the remaining steps always run;
    a failed tag write ends in PARTIALLY_FAILED and is never retried.
    """

    def __init__(
        self,
        guard: RepositoryGuard,
        ledger: VersionLedger,
        publisher: FunctionPublisher,
        collector: VersionGarbageCollector,
        *,
        build_command: Sequence[str] = DEFAULT_BUILD_COMMAND,
        work_dir: Union[str, Path, None] = None,
        build_fn: Callable[..., None] = builder.build,
        package_fn: Callable[..., packager.Artifact] = packager.package,
    ) -> None:
        self.guard = guard
        self.ledger = ledger
        self.publisher = publisher
        self.collector = collector
        self.build_command = tuple(build_command)
        self.work_dir = Path(work_dir) if work_dir is not None else Path.cwd()
        self.build_fn = build_fn
        self.package_fn = package_fn

    @classmethod
    def from_environment(
        cls,
        repo_path: Union[str, Path],
        *,
        region: Optional[str] = None,
        profile: Optional[str] = None,
        min_age: timedelta = timedelta(0),
        build_command: Sequence[str] = DEFAULT_BUILD_COMMAND,
        session_factory: Callable[..., boto3.Session] = boto3.Session,
    ) -> "DeploymentOrchestrator":
        """Wire the real git repository and a single Lambda client."""
        repo = open_repository(repo_path)
        client = lambda_client(region=region, profile=profile, session_factory=session_factory)
        return cls(
            RepositoryGuard(repo),
            VersionLedger(repo),
            FunctionPublisher(client),
            VersionGarbageCollector(client, min_age=min_age),
            build_command=build_command,
            work_dir=repo_path,
        )

    def _abort(self, outcome: DeployOutcome, reason: AbortReason, error: Exception) -> DeployOutcome:
        logger.error("Deploy of %s aborted (%s): %s", outcome.function_name, reason.value, error)
        outcome.abort_reason = reason
        outcome.error = error
        outcome.advance(DeployState.ABORTED)
        return outcome

    def run(
        self,
        function: DeployableFunction,
        *,
        build: bool = False,
        force: bool = False,
        keep_artifact: bool = False,
    ) -> DeployOutcome:
        outcome = DeployOutcome(function_name=function.name)

        # RepositoryError is left to propagate: nothing has happened yet
        try:
            self.guard.check_clean_tree()
        except DirtyTreeError as e:
            return self._abort(outcome, AbortReason.DIRTY_TREE, e)
        outcome.advance(DeployState.GUARD_CHECKED)

        if force:
            logger.info("Skipping deployment check for %s (forced)", function.name)
        elif self.ledger.is_already_deployed(function.name):
            return self._abort(
                outcome,
                AbortReason.ALREADY_DEPLOYED,
                AlreadyDeployedError(f"{function.name} is already deployed from this commit"),
            )
        outcome.advance(DeployState.IDEMPOTENCY_CHECKED)

        if build:
            try:
                self.build_fn(self.build_command, cwd=str(self.work_dir))
            except BuildError as e:
                return self._abort(outcome, AbortReason.BUILD_FAILED, e)
            outcome.advance(DeployState.BUILT)

        # relative bundles live in the checked repository, not the process cwd
        bundle = function.bundle if function.bundle.is_absolute() else self.work_dir / function.bundle
        try:
            artifact = self.package_fn(bundle)
        except PackageError as e:
            return self._abort(outcome, AbortReason.PACKAGE_FAILED, e)

        # the artifact is closed before publishing; nothing after PUBLISHED touches it
        try:
            try:
                if keep_artifact:
                    artifact.persist(self.work_dir / f"{function.name}.zip")
                payload = artifact.read_bytes()
            finally:
                artifact.close()
        except (PackageError, OSError) as e:
            return self._abort(outcome, AbortReason.PACKAGE_FAILED, e)
        outcome.advance(DeployState.PACKAGED)

        try:
            published = self.publisher.publish(function.name, payload)
        except PublishError as e:
            return self._abort(outcome, AbortReason.PUBLISH_FAILED, e)

        outcome.published = published
        outcome.advance(DeployState.PUBLISHED)

        # the tag uses the configured name so the idempotency check finds it
        try:
            self.ledger.record(function.name, published.version)
        except (LedgerError, RepositoryError) as e:
            failure = PartialFailure(function.name, published.version, e)
            logger.critical("%s", failure)
            outcome.error = failure
            outcome.advance(DeployState.PARTIALLY_FAILED)
            return outcome
        outcome.advance(DeployState.LEDGER_RECORDED)

        report = self.collector.collect(function.name, keep_version=published.version)
        if report.listing_error:
            logger.warning("Old versions of %s were not cleaned up: %s", function.name, report.listing_error)
        outcome.advance(DeployState.COLLECTED)

        outcome.result = DeployResult(
            function_name=function.name,
            new_version=published.version,
            deleted_versions=list(report.deleted_versions),
            deletion_failures=list(report.failures),
            cleanup_error=report.listing_error,
        )
        outcome.advance(DeployState.DONE)
        logger.info("Deployed %s version %s", function.name, published.version)
        return outcome
