"""
Cross-platform clipboard access.

This package provides clipboard access across different operating systems
through a unified interface.
"""

from clipboard_god.clipboard.base import ClipboardBackend, has_image, has_text
from clipboard_god.clipboard.factory import get_clipboard, get_clipboard_class

__all__ = [
    'ClipboardBackend',
    'get_clipboard',
    'get_clipboard_class',
    'has_image',
    'has_text',
]
