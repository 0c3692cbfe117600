"""
Shell domain models
"""
from enum import Enum


class ShellState(Enum):
    """
    Shell channel lifecycle.

    IDLE -> OPENING -> STREAMING -> CLOSED, or OPENING -> CLOSED when
    negotiation fails. CLOSED is terminal.
    """
    IDLE = "idle"
    OPENING = "opening"
    STREAMING = "streaming"
    CLOSED = "closed"
