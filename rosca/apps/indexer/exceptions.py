class EventDecodeError(ValueError):
    """A log matched a known topic but its payload could not be decoded."""


class ProjectionInconsistency(Exception):
    """An event refers to projection state that does not exist or contradicts it."""


class LogRangeTooLarge(Exception):
    """The node refused an eth_getLogs range; retry with a smaller one."""
