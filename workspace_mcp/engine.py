"""
Composition root of the workspace session engine.

One WorkspaceEngine owns every piece of mutable state: the event stream,
the session manager (and through it the registry), the file tree and the
synchronizer. Nothing here is a module-level singleton; the server keeps a
single engine for the lifetime of the process.
"""

import logging

from workspace_mcp.tools.events import EventStream, EventSubscription
from workspace_mcp.tools.filetree.model import FileTreeModel
from workspace_mcp.tools.synchronizer import WorkspaceSynchronizer
from workspace_mcp.tools.terminal.backends import spawn_backend
from workspace_mcp.tools.terminal.manager import SessionManager
from workspace_mcp.tools.terminal.pty_session import BackendFactory
from workspace_mcp.utils.config import ServiceConfig

logger = logging.getLogger(__name__)


class WorkspaceEngine:
    """
    Wires sessions, tree and synchronizer together and drives startup/shutdown.

    Attributes:
        events: Fan-in stream of engine -> UI notifications.
        sessions: The session manager.
        tree: The workspace file tree.
        workspace: The synchronizer, entry point for every workspace intent.
        ui_events: Subscription drained by the ``terminal_events`` tool.
    """

    def __init__(
        self,
        config: ServiceConfig,
        backend_factory: BackendFactory | None = None,
        platform: str | None = None,
    ):
        self.config = config
        self.events = EventStream(queue_size=config.EVENT_QUEUE_SIZE)
        self.sessions = SessionManager(
            self.events,
            config,
            backend_factory=backend_factory or spawn_backend,
            platform=platform,
        )
        self.tree = FileTreeModel()
        self.workspace = WorkspaceSynchronizer(self.tree, self.sessions, config)
        self.ui_events: EventSubscription | None = None
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> None:
        """Attach the UI event subscription and spawn the default session."""
        if self._started:
            return
        self._started = True
        self.ui_events = self.events.subscribe()
        if self.config.DEFAULT_SESSION_ON_START:
            session_id = await self.sessions.create()
            if session_id is None:
                logger.warning("Default terminal session could not be started.")
        logger.info("Workspace engine started.")

    async def shutdown(self) -> None:
        """Kill every session and detach the UI subscription."""
        if not self._started:
            return
        await self.sessions.kill_all()
        if self.ui_events is not None:
            self.ui_events.close()
            self.ui_events = None
        self._started = False
        logger.info("Workspace engine stopped.")
