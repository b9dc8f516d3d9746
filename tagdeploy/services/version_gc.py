# tagdeploy/services/version_gc.py
from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Callable, List

from botocore.exceptions import BotoCoreError, ClientError

from tagdeploy.models.deployment import (
    DeletionFailure,
    GarbageCollectionReport,
    PublishedVersion,
)

logger = logging.getLogger(__name__)

# "$LATEST" and other aliases never match
NUMERIC_VERSION = re.compile(r"^[0-9]+$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Lambda sends "2019-11-26T15:22:04.283+0000"; local stacks vary
def parse_last_modified(value: str) -> datetime:
    """Parse a LastModified string into an aware UTC datetime."""
    try:
        dt = datetime.strptime(value, "%Y-%m-%dT%H:%M:%S.%f%z")
    except ValueError:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _reason(e: Exception) -> str:
    if isinstance(e, ClientError):
        err = e.response.get("Error", {})
        return f"{err.get('Code', 'Unknown')}: {err.get('Message', str(e))}"
    return str(e)


class VersionGarbageCollector:
    """
    Deletes published versions of a function other than the one just deployed.

    With the default `min_age` of zero every numeric version that already
    exists is removed. A positive `min_age` keeps versions younger than it.
    """

    def __init__(
        self,
        lambda_client,
        *,
        min_age: timedelta = timedelta(0),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.lambda_client = lambda_client
        self.min_age = min_age
        self.clock = clock

    def list_versions(self, function_name: str) -> List[PublishedVersion]:
        paginator = self.lambda_client.get_paginator("list_versions_by_function")
        versions: List[PublishedVersion] = []
        for page in paginator.paginate(FunctionName=function_name):
            for item in page.get("Versions", []):
                # entries without both fields can't be judged
                if not item.get("Version") or not item.get("LastModified"):
                    continue
                versions.append(PublishedVersion(version=item["Version"], last_modified=item["LastModified"]))
        return versions

    def collect(self, function_name: str, keep_version: str) -> GarbageCollectionReport:
        try:
            versions = self.list_versions(function_name)
        except (ClientError, BotoCoreError) as e:
            logger.warning("Could not list versions of %s: %s", function_name, e)
            return GarbageCollectionReport(listing_error=_reason(e))

        deleted: List[str] = []
        failures: List[DeletionFailure] = []
        now = self.clock()

        for pv in versions:
            if not NUMERIC_VERSION.match(pv.version) or pv.version == keep_version:
                continue

            try:
                age = now - parse_last_modified(pv.last_modified)
            except ValueError as e:
                failures.append(DeletionFailure(version=pv.version, reason=f"bad LastModified {pv.last_modified!r}: {e}"))
                continue
            if age < self.min_age:
                logger.debug("Keeping %s:%s, only %s old", function_name, pv.version, age)
                continue

            try:
                self.lambda_client.delete_function(FunctionName=function_name, Qualifier=pv.version)
            except (ClientError, BotoCoreError) as e:
                logger.warning("Failed to delete %s:%s: %s", function_name, pv.version, e)
                failures.append(DeletionFailure(version=pv.version, reason=_reason(e)))
                continue
            logger.info("Deleted %s:%s", function_name, pv.version)
            deleted.append(pv.version)

        return GarbageCollectionReport(deleted_versions=deleted, failures=failures)
