import dataclasses
import json
from dataclasses import dataclass
from typing import Any, Iterable

import httpx

from vcr_transport import constants
from vcr_transport.models import CapturedRequest, CapturedResponse


@dataclass(frozen=True)
class CensorElement:
    name: str
    case_sensitive: bool = False

    def matches(self, key: str) -> bool:
        if self.case_sensitive:
            return key == self.name
        return key.lower() == self.name.lower()


def _matches_any(elements: list[CensorElement], key: str) -> bool:
    return any(element.matches(key) for element in elements)


class Censors:
    """
    Censors hold the headers, query parameters and body elements whose values must never be written to a cassette.

    Censored values are replaced with the censor text, the key itself is kept so that the
    shape of the request/response is preserved for matching.
    Applying the same censors to an already-censored request/response returns it unchanged.
    """

    _headers: list[CensorElement]
    _query_parameters: list[CensorElement]
    _body_elements: list[CensorElement]

    def __init__(self, censor_text: str = constants.CENSOR_TEXT):
        self._censor_text = censor_text
        self._headers = []
        self._query_parameters = []
        self._body_elements = []

    @classmethod
    def default_sensitive(cls, censor_text: str = constants.CENSOR_TEXT) -> "Censors":
        """Censors for the common credential-bearing headers, query parameters and body elements"""
        return (
            cls(censor_text)
            .censor_headers_by_keys(constants.DEFAULT_SENSITIVE_HEADERS)
            .censor_query_parameters_by_keys(constants.DEFAULT_SENSITIVE_QUERY_PARAMETERS)
            .censor_body_elements_by_keys(constants.DEFAULT_SENSITIVE_BODY_ELEMENTS)
        )

    @property
    def censor_text(self) -> str:
        return self._censor_text

    def censor_headers_by_keys(self, keys: Iterable[str], case_sensitive: bool = False) -> "Censors":
        self._headers.extend(CensorElement(key, case_sensitive) for key in keys)
        return self

    def censor_query_parameters_by_keys(self, keys: Iterable[str], case_sensitive: bool = False) -> "Censors":
        self._query_parameters.extend(CensorElement(key, case_sensitive) for key in keys)
        return self

    def censor_body_elements_by_keys(self, keys: Iterable[str], case_sensitive: bool = False) -> "Censors":
        self._body_elements.extend(CensorElement(key, case_sensitive) for key in keys)
        return self

    def apply_request_censors(self, request: CapturedRequest) -> CapturedRequest:
        return dataclasses.replace(
            request,
            uri=self.apply_url_censors(request.uri),
            headers=self.apply_headers_censors(request.headers),
            body=self.apply_body_censors(request.body),
        )

    def apply_response_censors(self, response: CapturedResponse) -> CapturedResponse:
        return dataclasses.replace(
            response,
            headers=self.apply_headers_censors(response.headers),
            body=self.apply_body_censors(response.body),
        )

    def apply_headers_censors(self, headers: dict[str, list[str]]) -> dict[str, list[str]]:
        censored = {}
        for key, values in headers.items():
            if _matches_any(self._headers, key):
                # keep one placeholder per value so that repeated headers keep their multiplicity
                censored[key] = [self._censor_text for _ in values]
            else:
                censored[key] = list(values)
        return censored

    def apply_url_censors(self, uri: str) -> str:
        if not self._query_parameters:
            return uri

        url = httpx.URL(uri)
        params = url.params.multi_items()
        if not any(_matches_any(self._query_parameters, key) for key, _ in params):
            # leave the URI string untouched (including its original encoding)
            return uri

        censored_params = [
            (key, self._censor_text if _matches_any(self._query_parameters, key) else value) for key, value in params
        ]
        return str(url.copy_with(params=censored_params))

    def apply_body_censors(self, body: bytes) -> bytes:
        if not self._body_elements or not body:
            return body

        try:
            parsed = json.loads(body)
        except ValueError:
            # only JSON bodies can be censored by element
            return body

        censored, changed = self._censor_json_value(parsed)
        if not changed:
            return body
        return json.dumps(censored).encode("utf-8")

    def _censor_json_value(self, value: Any) -> tuple[Any, bool]:
        if isinstance(value, dict):
            changed = False
            result = {}
            for key, item in value.items():
                if _matches_any(self._body_elements, key):
                    result[key] = self._censor_text
                    changed = True
                else:
                    result[key], item_changed = self._censor_json_value(item)
                    changed = changed or item_changed
            return result, changed

        if isinstance(value, list):
            changed = False
            result = []
            for item in value:
                censored_item, item_changed = self._censor_json_value(item)
                result.append(censored_item)
                changed = changed or item_changed
            return result, changed

        return value, False
