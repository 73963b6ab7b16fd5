"""Error taxonomy shared by the orchestrators and the API layer."""


class DevlogError(Exception):
    """Base class for all application errors."""


class ConfigurationError(DevlogError):
    """Required configuration (e.g. the AI credential) is missing."""


class NotInitializedError(DevlogError):
    """A chat turn was attempted before any context was started."""


class StaleContextError(DevlogError):
    """A chat turn referenced a context that is no longer the live one."""


class GenerationError(DevlogError):
    """The AI service replied with text that could not be interpreted."""


class AIServiceError(DevlogError):
    """The AI service request itself failed."""


class PreconditionError(DevlogError):
    """An operation was requested while its preconditions do not hold."""


class NodeLockedError(PreconditionError):
    def __init__(self, node_id: str):
        super().__init__(f"Node is locked: {node_id}")
        self.node_id = node_id


class NotFoundError(DevlogError):
    """An addressed entity does not exist."""


class NodeNotFoundError(NotFoundError):
    def __init__(self, node_id: str):
        super().__init__(f"Node not found: {node_id}")
        self.node_id = node_id


class RoadmapNotFoundError(NotFoundError):
    def __init__(self, roadmap_id: str):
        super().__init__(f"Roadmap not found: {roadmap_id}")
        self.roadmap_id = roadmap_id
