"""
Session domain module
"""
from .models import OperationResult
from .facade import SessionFacade

__all__ = [
    "OperationResult",
    "SessionFacade",
]
