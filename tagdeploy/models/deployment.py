# tagdeploy/models/deployment.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

MARKER_SEPARATOR = "@"


# One deployable entry from the [[functions]] table of the config file
@dataclass(frozen=True)
class DeployableFunction:
    name: str
    bundle: Path


# Ledger entry, stored in git as a lightweight tag named "<function>@<version>"
@dataclass(frozen=True)
class VersionMarker:
    function_name: str
    version: str

    @classmethod
    def parse(cls, tag_name: str) -> Optional["VersionMarker"]:
        """
        Split a tag name at the first '@'. Tags without one are not markers
        and yield None.
        """
        name, sep, version = tag_name.partition(MARKER_SEPARATOR)
        if not sep:
            return None
        return cls(function_name=name, version=version)

    @property
    def tag_name(self) -> str:
        return f"{self.function_name}{MARKER_SEPARATOR}{self.version}"

    def __str__(self) -> str:
        return self.tag_name


# One item of ListVersionsByFunction
@dataclass(frozen=True)
class PublishedVersion:
    version: str             # item["Version"], "$LATEST" or "1", "2", ...
    last_modified: str       # item["LastModified"], e.g. "2019-11-26T15:22:04.283+0000"


# What UpdateFunctionCode(Publish=True) handed back
@dataclass(frozen=True)
class PublishedFunction:
    function_name: str
    version: str


# A version the garbage collector could not delete
@dataclass(frozen=True)
class DeletionFailure:
    version: str
    reason: str


@dataclass(frozen=True)
class GarbageCollectionReport:
    deleted_versions: List[str] = field(default_factory=list)
    failures: List[DeletionFailure] = field(default_factory=list)
    listing_error: Optional[str] = None   # set when the version list itself could not be fetched


# Terminal report of a successful deploy
@dataclass(frozen=True)
class DeployResult:
    function_name: str
    new_version: str
    deleted_versions: List[str] = field(default_factory=list)
    deletion_failures: List[DeletionFailure] = field(default_factory=list)
    cleanup_error: Optional[str] = None   # version listing failed, nothing was collected


__all__ = [
    "DeployableFunction",
    "VersionMarker",
    "PublishedVersion",
    "PublishedFunction",
    "DeletionFailure",
    "GarbageCollectionReport",
    "DeployResult",
]
