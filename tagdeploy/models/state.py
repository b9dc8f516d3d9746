from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from tagdeploy.models.deployment import DeployResult, PublishedFunction


class DeployState(str, Enum):
    START = "start"
    GUARD_CHECKED = "guard_checked"
    IDEMPOTENCY_CHECKED = "idempotency_checked"
    BUILT = "built"
    PACKAGED = "packaged"
    PUBLISHED = "published"
    LEDGER_RECORDED = "ledger_recorded"
    COLLECTED = "collected"
    DONE = "done"
    # absorbing states
    ABORTED = "aborted"
    PARTIALLY_FAILED = "partially_failed"


class AbortReason(str, Enum):
    DIRTY_TREE = "dirty_tree"
    ALREADY_DEPLOYED = "already_deployed"
    BUILD_FAILED = "build_failed"
    PACKAGE_FAILED = "package_failed"
    PUBLISH_FAILED = "publish_failed"


@dataclass
class DeployOutcome:
    """
    Where a deploy run ended up.

    ABORTED runs never touched Lambda. PARTIALLY_FAILED runs published a
    version (see `published`) that the ledger does not know about.
    """
    function_name: str
    state: DeployState = DeployState.START
    history: List[DeployState] = field(default_factory=lambda: [DeployState.START])
    abort_reason: Optional[AbortReason] = None
    error: Optional[Exception] = None
    published: Optional[PublishedFunction] = None
    result: Optional[DeployResult] = None

    def advance(self, state: DeployState) -> None:
        self.state = state
        self.history.append(state)

    @property
    def needs_operator(self) -> bool:
        return self.state is DeployState.PARTIALLY_FAILED
