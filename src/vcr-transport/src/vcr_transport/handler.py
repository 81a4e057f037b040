import logging
import time
from datetime import datetime, timezone
from typing import Awaitable, Callable

import httpx

from vcr_transport import constants
from vcr_transport.advanced_settings import AdvancedSettings
from vcr_transport.cassette import Cassette
from vcr_transport.errors import NoMatchingInteractionError, PersistenceError
from vcr_transport.latency import DelaySimulator
from vcr_transport.models import Interaction, Mode

logger = logging.getLogger(__name__)


class RecordReplayHandler:
    """
    Decides, for every request, whether to make the real request, replay a stored interaction, or both.

    The real request is made through the `send` callable passed with each request
    (the inner transport's handle_request/handle_async_request).
    The handler keeps no per-request state so a single instance can serve concurrent requests.
    """

    def __init__(self, cassette: Cassette, mode: Mode | str, advanced_settings: AdvancedSettings | None = None):
        settings = advanced_settings or AdvancedSettings()
        self._cassette = cassette
        self._mode = Mode(mode)
        self._censors = settings.censors
        self._converter = settings.interaction_converter
        self._match_rules = settings.match_rules
        self._delay_simulator = DelaySimulator(settings.delay)

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def cassette(self) -> Cassette:
        return self._cassette

    def handle_request(
        self, request: httpx.Request, send: Callable[[httpx.Request], httpx.Response]
    ) -> httpx.Response:
        if self._mode == Mode.RECORD:
            request.read()
            return self._record_request(request, send)

        if self._mode == Mode.REPLAY:
            request.read()
            interaction = self._get_matching_interaction_or_raise(request)
            self._delay_simulator.apply(interaction, request)
            return self._converter.to_live_response(interaction.response, request)

        if self._mode == Mode.AUTO:
            request.read()
            interaction = self.find_matching_interaction(request)
            if interaction:
                self._delay_simulator.apply(interaction, request)
                return self._converter.to_live_response(interaction.response, request)
            return self._record_request(request, send)

        if self._mode == Mode.BYPASS:
            return send(request)

        raise NotImplementedError(f"mode not implemented: '{self._mode}'")

    async def handle_async_request(
        self, request: httpx.Request, send: Callable[[httpx.Request], Awaitable[httpx.Response]]
    ) -> httpx.Response:
        if self._mode == Mode.RECORD:
            await request.aread()
            return await self._record_request_async(request, send)

        if self._mode == Mode.REPLAY:
            await request.aread()
            interaction = self._get_matching_interaction_or_raise(request)
            await self._delay_simulator.apply_async(interaction, request)
            return self._converter.to_live_response(interaction.response, request)

        if self._mode == Mode.AUTO:
            await request.aread()
            interaction = self.find_matching_interaction(request)
            if interaction:
                await self._delay_simulator.apply_async(interaction, request)
                return self._converter.to_live_response(interaction.response, request)
            return await self._record_request_async(request, send)

        if self._mode == Mode.BYPASS:
            return await send(request)

        raise NotImplementedError(f"mode not implemented: '{self._mode}'")

    def find_matching_interaction(self, request: httpx.Request) -> Interaction | None:
        """Return the first stored interaction matching the request (the request body must have been read)"""
        received_request = self._converter.to_request(request, self._censors)
        for interaction in self._cassette.read():
            if self._match_rules.requests_match(received_request, interaction.request):
                return interaction

        logger.debug("No matching interaction found for request %s %s", request.method, request.url)
        return None

    def record_interaction(
        self,
        request: httpx.Request,
        response: httpx.Response,
        duration_ms: int,
        bypass_search: bool = False,
    ) -> PersistenceError | None:
        """
        Store the request/response in the cassette, overwriting a matching interaction.
        Both bodies must have been read. Returns the error if the cassette could not be saved.
        """
        interaction = Interaction(
            request=self._converter.to_request(request, self._censors),
            response=self._converter.to_response(response, self._censors),
            recorded_at=datetime.now(timezone.utc),
            duration_ms=duration_ms,
        )

        try:
            self._cassette.upsert(interaction, self._match_rules, bypass_search=bypass_search)
        except Exception as e:  # pylint: disable=broad-except
            logger.error(
                "Failed to save interaction (cassette='%s', request='%s %s')",
                self._cassette.name,
                request.method,
                request.url,
                exc_info=e,
            )
            return PersistenceError(self._cassette.name, e)

        logger.info(
            "📝 Recorded %s %s (%sms) to cassette %s", request.method, request.url, duration_ms, self._cassette.name
        )
        return None

    def _get_matching_interaction_or_raise(self, request: httpx.Request) -> Interaction:
        interaction = self.find_matching_interaction(request)
        if not interaction:
            raise NoMatchingInteractionError(request.method, str(request.url), self._cassette.name)
        return interaction

    def _record_request(
        self,
        request: httpx.Request,
        send: Callable[[httpx.Request], httpx.Response],
        bypass_search: bool = False,
    ) -> httpx.Response:
        # Make the real request and capture the request duration (including reading the body)
        start_time = time.perf_counter()
        response = send(request)
        response.read()
        elapsed_time_ms = int((time.perf_counter() - start_time) * 1000)

        error = self.record_interaction(request, response, elapsed_time_ms, bypass_search)
        self._attach_persistence_error(response, error)
        return response

    async def _record_request_async(
        self,
        request: httpx.Request,
        send: Callable[[httpx.Request], Awaitable[httpx.Response]],
        bypass_search: bool = False,
    ) -> httpx.Response:
        # Make the real request and capture the request duration (including reading the body)
        start_time = time.perf_counter()
        response = await send(request)
        await response.aread()
        elapsed_time_ms = int((time.perf_counter() - start_time) * 1000)

        error = self.record_interaction(request, response, elapsed_time_ms, bypass_search)
        self._attach_persistence_error(response, error)
        return response

    @staticmethod
    def _attach_persistence_error(response: httpx.Response, error: PersistenceError | None):
        if error:
            response.extensions[constants.PERSISTENCE_ERROR_EXTENSION] = error
