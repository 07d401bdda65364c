"""
tyson - destroy Azure virtual machines and their disk blobs, on purpose or at random
"""

__version__ = "0.1.0"

from .core import Tyson
from .errors import TysonError

__all__ = ["Tyson", "TysonError"]
