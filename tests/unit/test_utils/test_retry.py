"""Unit tests for the per-article retry controller"""

import pytest
from unittest.mock import AsyncMock, patch

from naturedl.models.config import DownloadSettings
from naturedl.models.progress import Progress
from naturedl.orchestration.context import DownloadContext
from naturedl.utils.exceptions import ArtifactFetchError
from naturedl.utils.retry import RetryController


@pytest.fixture
def context():
    """Create a fresh run context."""
    return DownloadContext(settings=DownloadSettings())


@pytest.fixture
def sleep():
    return AsyncMock()


@pytest.fixture
def controller(context, sleep):
    """Create retry controller instance."""
    return RetryController(context, sleep=sleep)


def failing(times, error=None):
    """Attempt function failing `times` times before succeeding."""
    calls = []

    async def attempt(progress):
        calls.append(progress)
        if len(calls) <= times:
            raise error or ArtifactFetchError("Got an error response")

    attempt.calls = calls
    return attempt


class TestSuccess:
    """Tests for attempts that eventually succeed."""

    @pytest.mark.asyncio
    async def test_first_attempt(self, controller, context, sleep):
        """Test success on first trial logs nothing."""
        attempt = failing(0)
        assert await controller.run(5, 5, attempt, 1, 2) is True
        assert len(attempt.calls) == 1
        assert context.warnings == 0
        assert context.errors == 0
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_success_on_third_trial(self, controller, context, sleep):
        """Test no further trials after a success."""
        attempt = failing(2)
        assert await controller.run(5, 5, attempt, 1, 2) is True
        assert len(attempt.calls) == 3
        assert context.warnings == 2
        assert context.errors == 0
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_success_on_last_trial(self, controller, context):
        attempt = failing(4)
        assert await controller.run(5, 0, attempt, 1, 1) is True
        assert context.warnings == 4
        assert context.errors == 0


class TestExhausted:
    """Tests for attempts that always fail."""

    @pytest.mark.asyncio
    async def test_warnings_then_one_error(self, controller, context, sleep):
        """Test R warnings and exactly one error for 1 + R trials."""
        attempt = failing(100)
        assert await controller.run(5, 5, attempt, 1, 1) is False
        assert len(attempt.calls) == 5
        assert context.warnings == 4
        assert context.errors == 1
        assert sleep.await_count == 4
        sleep.assert_awaited_with(5)

    @pytest.mark.asyncio
    async def test_zero_interval_does_not_sleep(self, controller, context, sleep):
        """Test interval 0 retries immediately."""
        attempt = failing(100)
        assert await controller.run(3, 0, attempt, 1, 1) is False
        assert context.warnings == 2
        assert context.errors == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_single_trial(self, controller, context, sleep):
        """Test no retry configured means one error, no warning."""
        assert await controller.run(1, 5, failing(100), 1, 1) is False
        assert context.warnings == 0
        assert context.errors == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_does_not_raise(self, controller):
        attempt = failing(100, error=RuntimeError("boom"))
        assert await controller.run(2, 0, attempt, 1, 1) is False


class TestProgressAndMessages:
    """Tests for progress values and log messages."""

    @pytest.mark.asyncio
    async def test_progress_per_trial(self, controller):
        attempt = failing(2)
        await controller.run(3, 0, attempt, 4, 10)
        assert attempt.calls == [
            Progress(4, 10, 1, 3),
            Progress(4, 10, 2, 3),
            Progress(4, 10, 3, 3),
        ]

    @pytest.mark.asyncio
    async def test_messages_with_interval(self, controller, context):
        with patch.object(context, "warn") as warn, patch.object(
            context, "error"
        ) as error:
            await controller.run(2, 5, failing(100), 1, 1)

        warn.assert_called_once_with(
            "Retry after 5s: Got an error response", Progress(1, 1, 1, 2)
        )
        error.assert_called_once_with(
            "Failed: Got an error response", Progress(1, 1, 2, 2)
        )

    @pytest.mark.asyncio
    async def test_message_without_interval(self, controller, context):
        with patch.object(context, "warn") as warn:
            await controller.run(2, 0, failing(100), 1, 1)
        warn.assert_called_once_with(
            "Retry: Got an error response", Progress(1, 1, 1, 2)
        )

    @pytest.mark.asyncio
    async def test_empty_error_message_uses_type_name(self, controller, context):
        with patch.object(context, "error") as error:
            await controller.run(1, 0, failing(1, error=TimeoutError()), 1, 1)
        error.assert_called_once_with("Failed: TimeoutError", Progress(1, 1, 1, 1))

    @pytest.mark.asyncio
    async def test_fractional_interval(self, controller, context, sleep):
        with patch.object(context, "warn") as warn:
            await controller.run(2, 0.5, failing(100), 1, 1)
        assert warn.call_args.args[0] == "Retry after 0.5s: Got an error response"
        sleep.assert_awaited_once_with(0.5)


class TestDefaultSleep:
    """Tests for the default suspension."""

    @pytest.mark.asyncio
    async def test_uses_asyncio_sleep(self, context):
        with patch(
            "naturedl.utils.retry.asyncio.sleep", new_callable=AsyncMock
        ) as mock_sleep:
            controller = RetryController(context)
            await controller.run(2, 3, failing(1), 1, 1)
        mock_sleep.assert_awaited_once_with(3)
