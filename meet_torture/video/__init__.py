"""
Video package
-------------
Frame capture from remote video elements for quality checks.
"""

from .operator import VideoOperator

__all__ = ["VideoOperator"]
