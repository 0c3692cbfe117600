"""
Shell domain module
"""
from .models import ShellState
from .channel import ShellChannel

__all__ = [
    "ShellState",
    "ShellChannel",
]
