import pytest

from tanlink.core.errors import NotFoundError, TransientStoreError, translate_store_errors
from tanlink.core.retry import retry_on_transient_error


class TestRetryOnTransientError:
    @pytest.mark.asyncio
    async def test_succeeds_after_transient_failures(self):
        calls = []

        @retry_on_transient_error(max_attempts=3, delay_seconds=0)
        async def read():
            calls.append(1)
            if len(calls) < 3:
                raise TransientStoreError("unavailable")
            return "ok"

        assert await read() == "ok"
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_raises_after_max_attempts(self):
        calls = []

        @retry_on_transient_error(max_attempts=3, delay_seconds=0)
        async def read():
            calls.append(1)
            raise TransientStoreError("unavailable")

        with pytest.raises(TransientStoreError):
            await read()
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_logical_errors_pass_through(self):
        calls = []

        @retry_on_transient_error(max_attempts=3, delay_seconds=0)
        async def read():
            calls.append(1)
            raise NotFoundError("missing")

        with pytest.raises(NotFoundError):
            await read()
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_defaults_come_from_settings(self):
        calls = []

        @retry_on_transient_error()
        async def read():
            calls.append(1)
            raise TransientStoreError("unavailable")

        with pytest.raises(TransientStoreError):
            await read()
        assert len(calls) == 3


class TestTranslateStoreErrors:
    def test_transport_errors_become_transient(self):
        from sqlalchemy.exc import OperationalError

        with pytest.raises(TransientStoreError):
            with translate_store_errors("load"):
                raise OperationalError("SELECT 1", {}, Exception("server closed the connection"))

    def test_other_errors_untouched(self):
        with pytest.raises(ValueError):
            with translate_store_errors("load"):
                raise ValueError("bad")
