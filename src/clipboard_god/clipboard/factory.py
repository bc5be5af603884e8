import platform
from typing import Optional, Type

from clipboard_god.clipboard.base import ClipboardBackend
from clipboard_god.utils.process import CommandRunner


def get_clipboard_class(system: Optional[str] = None) -> Type[ClipboardBackend]:
    system = system or platform.system()

    if system == "Windows":
        from clipboard_god.clipboard.windows import WindowsClipboard
        return WindowsClipboard
    elif system == "Linux":
        from clipboard_god.clipboard.linux import LinuxClipboard
        return LinuxClipboard
    elif system == "Darwin":
        from clipboard_god.clipboard.macos import MacOSClipboard
        return MacOSClipboard
    else:
        raise NotImplementedError(f"Platform '{system}' is not supported")


def get_clipboard(runner: Optional[CommandRunner] = None, system: Optional[str] = None) -> ClipboardBackend:
    clipboard_class = get_clipboard_class(system)
    if system is None:
        system = platform.system()
    if system == "Linux":
        return clipboard_class(runner=runner)
    return clipboard_class()
