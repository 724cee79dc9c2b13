"""Tests for the downloader exception hierarchy"""

import pytest

from naturedl.utils.exceptions import (
    ArtifactFetchError,
    DownloadAborted,
    DownloaderError,
    InvalidIdError,
    LoginError,
    ScrapeError,
    SessionOpenError,
)


@pytest.mark.parametrize(
    "exc_class",
    [
        SessionOpenError,
        LoginError,
        ArtifactFetchError,
        DownloadAborted,
        InvalidIdError,
        ScrapeError,
    ],
)
def test_inherits_from_downloader_error(exc_class):
    assert issubclass(exc_class, DownloaderError)


def test_download_aborted_default_message():
    assert str(DownloadAborted()) == "Aborted"


def test_download_aborted_custom_message():
    assert str(DownloadAborted("Interrupted")) == "Interrupted"


def test_catch_all():
    with pytest.raises(DownloaderError, match="Failed to login"):
        raise LoginError("Failed to login: login_failed")
