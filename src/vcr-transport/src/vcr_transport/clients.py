import httpx

from vcr_transport.advanced_settings import AdvancedSettings
from vcr_transport.cassette import Cassette
from vcr_transport.config import Config
from vcr_transport.models import Mode
from vcr_transport.transport import AsyncVCRTransport, VCRTransport


def _get_cassette(cassette: Cassette | tuple[str, str]) -> Cassette:
    if isinstance(cassette, Cassette):
        return cassette
    folder, name = cassette
    return Cassette(folder, name)


def new_http_client(
    cassette: Cassette | tuple[str, str],
    mode: Mode | str,
    advanced_settings: AdvancedSettings | None = None,
    inner_transport: httpx.BaseTransport | None = None,
    **client_kwargs,
) -> httpx.Client:
    """
    Get a new httpx.Client that records to/replays from a cassette.

    cassette is either a Cassette or a (folder, name) tuple.
    client_kwargs are passed to httpx.Client (e.g. base_url, headers, timeout).
    """
    transport = VCRTransport(_get_cassette(cassette), mode, advanced_settings, inner_transport)
    return httpx.Client(transport=transport, **client_kwargs)


def new_async_http_client(
    cassette: Cassette | tuple[str, str],
    mode: Mode | str,
    advanced_settings: AdvancedSettings | None = None,
    inner_transport: httpx.AsyncBaseTransport | None = None,
    **client_kwargs,
) -> httpx.AsyncClient:
    """Async twin of new_http_client"""
    transport = AsyncVCRTransport(_get_cassette(cassette), mode, advanced_settings, inner_transport)
    return httpx.AsyncClient(transport=transport, **client_kwargs)


def new_http_client_from_config(
    config: Config,
    cassette_name: str,
    inner_transport: httpx.BaseTransport | None = None,
    **client_kwargs,
) -> httpx.Client:
    return new_http_client(
        config.get_cassette(cassette_name),
        config.mode,
        config.to_advanced_settings(),
        inner_transport,
        **client_kwargs,
    )


def new_async_http_client_from_config(
    config: Config,
    cassette_name: str,
    inner_transport: httpx.AsyncBaseTransport | None = None,
    **client_kwargs,
) -> httpx.AsyncClient:
    return new_async_http_client(
        config.get_cassette(cassette_name),
        config.mode,
        config.to_advanced_settings(),
        inner_transport,
        **client_kwargs,
    )
