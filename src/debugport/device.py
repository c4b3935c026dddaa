"""Device and agent identity providers for the server info route."""

from __future__ import annotations

import platform
import socket

from debugport import __version__
from debugport.domain.models import AgentInfo, DeviceInfo, ServerInfo

AGENT_ID = "debugport"
AGENT_NAME = "debugport"


def current_device() -> DeviceInfo:
    uname = platform.uname()
    return DeviceInfo(
        device=socket.gethostname(),
        model=uname.machine,
        manufacturer=uname.system,
        system=platform.platform(),
        release=uname.release,
        python_version=platform.python_version(),
    )


def current_agent() -> AgentInfo:
    return AgentInfo(id=AGENT_ID, name=AGENT_NAME, version_name=__version__)


def server_info() -> ServerInfo:
    return ServerInfo(device=current_device(), agent_version=current_agent())
