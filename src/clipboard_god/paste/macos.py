from typing import List

from clipboard_god.models import ItemType
from clipboard_god.paste.base import PasteDriver, PasteMethod

_APPLESCRIPT = 'tell application "System Events" to keystroke "v" using command down'


class MacOSPasteDriver(PasteDriver):
    name = "macos"

    def methods(self, item_type: ItemType) -> List[PasteMethod]:
        return [PasteMethod("osascript", ("osascript", "-e", _APPLESCRIPT), requires="osascript")]
