from clipboard_god.models.clipboard_item import (
    AddResult,
    ClipboardItem,
    ItemType,
    PasteResult,
    from_millis,
    to_millis,
)

__all__ = [
    'AddResult',
    'ClipboardItem',
    'ItemType',
    'PasteResult',
    'from_millis',
    'to_millis',
]
