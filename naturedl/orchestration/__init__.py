"""Orchestration module for batch download coordination."""

from naturedl.orchestration.context import DownloadContext
from naturedl.orchestration.result import DownloadResult
from naturedl.orchestration.downloader import (
    Downloader,
    artifact_filename,
    journal_directory,
)

__all__ = [
    "Downloader",
    "DownloadContext",
    "DownloadResult",
    "artifact_filename",
    "journal_directory",
]
