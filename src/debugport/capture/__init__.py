"""Capture storage for debugport.

Public API:
    CaptureStore -- Abstract base class
    FileCaptureStore -- Directory-backed implementation
"""

from debugport.capture.base import CaptureError, CaptureStore
from debugport.capture.filesystem import FileCaptureStore

__all__ = ["CaptureError", "CaptureStore", "FileCaptureStore"]
