"""
Platform paste simulation.

Each driver owns an ordered fallback chain of key-injection methods; the
driver is chosen once at startup from the detected platform and session.
"""

from clipboard_god.paste.base import DeliveryOutcome, PasteDriver, PasteMethod
from clipboard_god.paste.factory import detect_session, get_paste_driver

__all__ = [
    'DeliveryOutcome',
    'PasteDriver',
    'PasteMethod',
    'detect_session',
    'get_paste_driver',
]
