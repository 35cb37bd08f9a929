"""
Middleware package for the Drive upload relay.
"""

from .logging import LoggingMiddleware
from .cors import CORSMiddleware

__all__ = [
    "LoggingMiddleware",
    "CORSMiddleware"
]
