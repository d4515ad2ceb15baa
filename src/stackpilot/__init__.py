"""
stackpilot - start, stop and self-update a docker-compose service stack
"""

__version__ = "0.1.0"

from .core import StackPilot
from .errors import StackError

__all__ = ["StackPilot", "StackError"]
