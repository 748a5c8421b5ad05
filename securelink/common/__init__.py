"""
Common utilities and protocol definitions for SecureLink.
"""

from .protocol import *
from .utils import b64encode, b64decode, constant_time_compare, zeroize
from .exceptions import *

__all__ = [
    'b64encode',
    'b64decode',
    'constant_time_compare',
    'zeroize',
]
