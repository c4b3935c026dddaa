"""debugport -- HTTP control plane for an on-device automation agent.

Lets a developer inspector on the same network trigger UI actions, pull
snapshot/screenshot captures, and push a temporary rule set. The server
follows a live port preference: every change tears the running instance
down and brings up a fresh one.
"""

__version__ = "0.1.0"
