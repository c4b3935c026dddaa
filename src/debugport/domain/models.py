"""Core domain models for debugport.

Wire shapes exchanged with the inspector client and with the collaborator
stores. Field names are snake_case in Python and camelCase on the wire;
optional fields are always serialized, ``null`` included, because the
client tells "present as null" apart from "absent".
"""

from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Reserved identity of the ephemeral ("memory") rule subscription.
MEMORY_SUBS_ID = -1
MEMORY_SUBS_NAME = "Memory Subscription"
MEMORY_SUBS_VERSION = 0
MEMORY_SUBS_AUTHOR = "@gkd-kit/inspect"
MEMORY_SUBS_ORDER = -1


class WireModel(BaseModel):
    """Base for everything that crosses the HTTP boundary."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ServerState(str, enum.Enum):
    """States of the control-plane server lifecycle."""

    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# RPC envelopes
# ---------------------------------------------------------------------------


class ReqId(WireModel):
    """Reference to a previously captured snapshot or screenshot."""

    id: int


class RpcOk(WireModel):
    message: str | None = None


class ErrorEnvelope(WireModel):
    """Rendered failure. Only the error translation layer builds these."""

    message: str


# ---------------------------------------------------------------------------
# Server identity
# ---------------------------------------------------------------------------


class DeviceInfo(WireModel):
    model_config = ConfigDict(frozen=True)

    device: str
    model: str
    manufacturer: str
    system: str
    release: str
    python_version: str


class AgentInfo(WireModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    version_name: str


class ServerInfo(WireModel):
    """Computed fresh on every request."""

    device: DeviceInfo
    agent_version: AgentInfo


# ---------------------------------------------------------------------------
# Captures
# ---------------------------------------------------------------------------


class SnapshotInfo(WireModel):
    """Descriptor of a stored snapshot."""

    id: int
    app_id: str | None = None
    activity_id: str | None = None
    screen_width: int = 0
    screen_height: int = 0
    is_landscape: bool = False
    github_asset_id: int | None = None


class CaptureResult(WireModel):
    """What the automation engine hands back for a capture request.

    ``snapshot`` is the full node tree document; ``screenshot`` is a
    base64-encoded PNG.
    """

    snapshot: dict
    screenshot: str


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


class Position(WireModel):
    left: str | None = None
    top: str | None = None
    right: str | None = None
    bottom: str | None = None


class ActionRequest(WireModel):
    """A selector plus the action to perform on the node it matches."""

    selector: str
    fast_query: bool = False
    action: str | None = None
    position: Position | None = None


class ActionResult(WireModel):
    action: str | None = None
    result: bool
    shizuku: bool = False
    position: tuple[float, float] | None = None


# ---------------------------------------------------------------------------
# Rule subscriptions
# ---------------------------------------------------------------------------


class RawSubscription(WireModel):
    """A rule document. Unknown keys (apps, globalGroups...) are kept."""

    model_config = ConfigDict(extra="allow")

    id: int
    name: str
    version: int = 0
    author: str | None = None
    update_url: str | None = None
    support_uri: str | None = None
    check_update_url: str | None = None


class SubsItem(WireModel):
    """Local bookkeeping row for an installed subscription."""

    model_config = ConfigDict(frozen=True)

    id: int
    order: int = 0
    enable: bool = True
    enable_update: bool = True
    mtime: int = Field(default=0, description="Last modification, epoch milliseconds")
