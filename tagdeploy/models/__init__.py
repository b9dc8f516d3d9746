from tagdeploy.models.deployment import (
    DeployableFunction,
    VersionMarker,
    PublishedVersion,
    PublishedFunction,
    DeletionFailure,
    GarbageCollectionReport,
    DeployResult,
)
from tagdeploy.models.state import DeployState, AbortReason, DeployOutcome
