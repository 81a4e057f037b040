import logging

import httpx

from vcr_transport.advanced_settings import AdvancedSettings
from vcr_transport.cassette import Cassette
from vcr_transport.handler import RecordReplayHandler
from vcr_transport.models import Mode

logger = logging.getLogger(__name__)


class VCRTransport(httpx.BaseTransport):
    """
    httpx transport that records requests to (and replays them from) a cassette.

    Wraps a real transport which is used whenever the mode requires the real request to be made.
    Usage: httpx.Client(transport=VCRTransport(cassette, Mode.AUTO))
    """

    def __init__(
        self,
        cassette: Cassette,
        mode: Mode | str,
        advanced_settings: AdvancedSettings | None = None,
        inner_transport: httpx.BaseTransport | None = None,
    ):
        self._inner_transport = inner_transport or httpx.HTTPTransport()
        self._handler = RecordReplayHandler(cassette, mode, advanced_settings)
        logger.info("📼 Using cassette %s in %s mode", cassette.path, self._handler.mode.value)

    @property
    def handler(self) -> RecordReplayHandler:
        return self._handler

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        return self._handler.handle_request(request, self._inner_transport.handle_request)

    def close(self):
        self._inner_transport.close()


class AsyncVCRTransport(httpx.AsyncBaseTransport):
    """
    Async twin of VCRTransport.
    Saving a recorded interaction (cassette lock + file write) runs synchronously on the event loop
    before the response is returned.
    Usage: httpx.AsyncClient(transport=AsyncVCRTransport(cassette, Mode.AUTO))
    """

    def __init__(
        self,
        cassette: Cassette,
        mode: Mode | str,
        advanced_settings: AdvancedSettings | None = None,
        inner_transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._inner_transport = inner_transport or httpx.AsyncHTTPTransport()
        self._handler = RecordReplayHandler(cassette, mode, advanced_settings)
        logger.info("📼 Using cassette %s in %s mode", cassette.path, self._handler.mode.value)

    @property
    def handler(self) -> RecordReplayHandler:
        return self._handler

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return await self._handler.handle_async_request(request, self._inner_transport.handle_async_request)

    async def aclose(self):
        await self._inner_transport.aclose()
