import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple

from clipboard_god.exceptions import PasteExecutionError
from clipboard_god.models import ItemType
from clipboard_god.utils.process import CommandRunner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PasteMethod:
    """One link of a fallback chain.

    A method without ``command`` injects nothing: it resolves as soon as
    ``requires`` is installed and leaves the paste to the user.
    """
    name: str
    command: Optional[Tuple[str, ...]] = None
    requires: Optional[str] = None
    timeout: float = 5.0

    @property
    def manual(self) -> bool:
        return self.command is None


@dataclass(frozen=True)
class DeliveryOutcome:
    method: str
    injected: bool


class PasteDriver(ABC):
    """Simulates the paste keystroke for one platform/session type."""

    name = "abstract"

    def __init__(self, runner: Optional[CommandRunner] = None):
        self.runner = runner or CommandRunner()

    @abstractmethod
    def methods(self, item_type: ItemType) -> List[PasteMethod]:
        """Ordered fallback chain for ``item_type``."""

    def settle_delay(self, item_type: ItemType) -> float:
        """Seconds to wait after the clipboard write before injecting keys."""
        return 0.0

    def paste(self, item_type: ItemType) -> DeliveryOutcome:
        """Walk the chain until one method succeeds.

        Raises ``PasteExecutionError`` when every method is missing or failed.
        """
        attempted = []
        for method in self.methods(item_type):
            if method.requires and not self.runner.which(method.requires):
                logger.debug("Paste method %s skipped: %s not installed", method.name, method.requires)
                continue

            if method.manual:
                logger.info("Paste via %s: no key injection available, paste manually", method.name)
                return DeliveryOutcome(method=method.name, injected=False)

            attempted.append(method.name)
            result = self.runner.run(method.command, timeout=method.timeout)
            if result.ok:
                logger.info("Paste delivered via %s", method.name)
                return DeliveryOutcome(method=method.name, injected=True)

            logger.warning(
                "Paste method %s failed (exit %s): %s",
                method.name, result.returncode, result.stderr.decode("utf-8", "ignore").strip(),
            )

        tried = ", ".join(attempted) if attempted else "none available"
        raise PasteExecutionError(f"All paste methods failed ({tried}); paste manually")
