import asyncio
import logging
import time

import httpx

from vcr_transport.models import DelayKind, DelayPolicy, Interaction

logger = logging.getLogger(__name__)


class DelaySimulator:
    """
    DelaySimulator waits before a replayed response is returned.
    The wait is based on the delay policy: none, the duration recorded with the interaction, or a fixed duration.

    The wait never outlasts the request's read timeout: if the delay is longer, the simulator waits
    for the timeout and raises httpx.ReadTimeout as a real slow server would.
    The async wait is also interrupted when the calling task is cancelled.
    """

    def __init__(self, policy: DelayPolicy | None = None):
        self._policy = policy or DelayPolicy.none()

    @property
    def policy(self) -> DelayPolicy:
        return self._policy

    def get_delay_ms(self, interaction: Interaction) -> int:
        if self._policy.kind == DelayKind.ORIGINAL:
            return interaction.duration_ms
        if self._policy.kind == DelayKind.FIXED:
            return self._policy.fixed_ms
        return 0

    def apply(self, interaction: Interaction, request: httpx.Request):
        wait_s, timed_out = self._get_wait(interaction, request)
        if wait_s > 0:
            time.sleep(wait_s)
        if timed_out:
            raise httpx.ReadTimeout("Simulated delay exceeded the read timeout", request=request)

    async def apply_async(self, interaction: Interaction, request: httpx.Request):
        wait_s, timed_out = self._get_wait(interaction, request)
        if wait_s > 0:
            await asyncio.sleep(wait_s)
        if timed_out:
            raise httpx.ReadTimeout("Simulated delay exceeded the read timeout", request=request)

    def _get_wait(self, interaction: Interaction, request: httpx.Request) -> tuple[float, bool]:
        delay_s = self.get_delay_ms(interaction) / 1000
        timeout_s = _get_read_timeout(request)
        if timeout_s is not None and delay_s > timeout_s:
            logger.debug("Simulated delay of %ss capped by read timeout of %ss", delay_s, timeout_s)
            return timeout_s, True
        return delay_s, False


def _get_read_timeout(request: httpx.Request) -> float | None:
    # httpx clients put their timeout configuration in the request extensions
    timeout = request.extensions.get("timeout") or {}
    return timeout.get("read")
