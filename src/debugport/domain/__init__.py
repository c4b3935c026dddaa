"""Domain models for debugport.

Wire shapes and value objects shared by the server, the collaborator
stores and the tests. All models use Pydantic v2.
"""

from debugport.domain.models import (
    ActionRequest,
    ActionResult,
    CaptureResult,
    ErrorEnvelope,
    RawSubscription,
    ReqId,
    RpcOk,
    ServerInfo,
    ServerState,
    SnapshotInfo,
    SubsItem,
)

__all__ = [
    "ActionRequest",
    "ActionResult",
    "CaptureResult",
    "ErrorEnvelope",
    "RawSubscription",
    "ReqId",
    "RpcOk",
    "ServerInfo",
    "ServerState",
    "SnapshotInfo",
    "SubsItem",
]
