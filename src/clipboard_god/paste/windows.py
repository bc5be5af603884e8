from typing import List

from clipboard_god.models import ItemType
from clipboard_god.paste.base import PasteDriver, PasteMethod

_SENDKEYS = (
    "Add-Type -AssemblyName System.Windows.Forms; "
    "[System.Windows.Forms.SendKeys]::SendWait('^v')"
)


class WindowsPasteDriver(PasteDriver):
    name = "windows"

    def methods(self, item_type: ItemType) -> List[PasteMethod]:
        return [PasteMethod(
            "powershell-sendkeys",
            ("powershell", "-NoProfile", "-Command", _SENDKEYS),
            requires="powershell",
        )]
