from clipboard_god.utils.file_manager import ImageStore
from clipboard_god.utils.process import CommandResult, CommandRunner
from clipboard_god.utils.worker import LatestValueWorker

__all__ = [
    'CommandResult',
    'CommandRunner',
    'ImageStore',
    'LatestValueWorker',
]
