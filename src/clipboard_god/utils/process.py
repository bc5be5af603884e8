import logging
import shutil
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    returncode: int
    stdout: bytes = b""
    stderr: bytes = b""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """Runs external commands and reports their outcome instead of raising."""

    def which(self, name: str) -> Optional[str]:
        return shutil.which(name)

    def run(
        self,
        command: Sequence[str],
        timeout: float = 5.0,
        input: Optional[bytes] = None,
        capture_output: bool = True,
    ) -> CommandResult:
        # Tools that fork a daemon to keep owning the selection (xclip, wl-copy)
        # keep inherited pipes open, so their output must not be captured.
        stream = subprocess.PIPE if capture_output else subprocess.DEVNULL
        try:
            result = subprocess.run(
                list(command),
                input=input,
                stdout=stream,
                stderr=stream,
                timeout=timeout,
            )
        except FileNotFoundError as exc:
            logger.debug("Command not found: %s", command[0])
            return CommandResult(127, b"", str(exc).encode("utf-8"))
        except subprocess.TimeoutExpired:
            logger.warning("Command timed out after %ss: %s", timeout, command[0])
            return CommandResult(-1, b"", b"timeout")
        except OSError as exc:
            logger.warning("Command failed to start: %s (%s)", command[0], exc)
            return CommandResult(126, b"", str(exc).encode("utf-8"))

        return CommandResult(result.returncode, result.stdout or b"", result.stderr or b"")
