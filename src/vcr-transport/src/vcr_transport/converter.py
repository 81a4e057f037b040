import httpx

from vcr_transport import constants
from vcr_transport.censors import Censors
from vcr_transport.models import CapturedRequest, CapturedResponse


def headers_to_dict(headers: httpx.Headers) -> dict[str, list[str]]:
    result: dict[str, list[str]] = {}
    for key, value in headers.multi_items():
        result.setdefault(key, []).append(value)
    return result


def dict_to_header_list(headers: dict[str, list[str]]) -> list[tuple[str, str]]:
    return [(key, value) for key, values in headers.items() for value in values]


class InteractionConverter:
    """
    Converts live httpx requests/responses to the captured form stored in a cassette (applying censors)
    and converts stored responses back to httpx responses for replay.
    """

    def to_request(self, request: httpx.Request, censors: Censors) -> CapturedRequest:
        # The request body must have been read (request.read()/aread()) before converting
        captured = CapturedRequest(
            method=request.method,
            uri=str(request.url),
            headers=headers_to_dict(request.headers),
            body=request.content,
        )
        return censors.apply_request_censors(captured)

    def to_response(self, response: httpx.Response, censors: Censors) -> CapturedResponse:
        # response.content is the decoded body so don't keep headers describing the encoded body
        headers = {
            key: values
            for key, values in headers_to_dict(response.headers).items()
            if key not in constants.RESPONSE_HEADERS_NOT_RECORDED
        }
        captured = CapturedResponse(
            status_code=response.status_code,
            headers=headers,
            body=response.content,
            http_version=response.http_version,
        )
        return censors.apply_response_censors(captured)

    def to_live_response(self, stored: CapturedResponse, request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status_code=stored.status_code,
            headers=dict_to_header_list(stored.headers),
            content=stored.body,
            request=request,
            extensions={
                "http_version": stored.http_version.encode("ascii"),
                constants.REPLAYED_EXTENSION: True,
            },
        )
