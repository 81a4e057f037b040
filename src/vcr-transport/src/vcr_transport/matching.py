import json
from typing import Any, Callable, Iterable

import httpx

from vcr_transport.models import CapturedRequest

# A match rule compares the (censored) received request with a stored request
MatchRule = Callable[[CapturedRequest, CapturedRequest], bool]


class MatchRules:
    """
    An ordered set of rules deciding whether a received request matches a stored one.

    The overall result is the logical AND of all rules, evaluated in the order they were added
    and stopping at the first rule that does not match.
    A MatchRules instance with no rules matches every request - use MatchRules.default() for
    method + full URL matching.
    """

    _rules: list[MatchRule]

    def __init__(self):
        self._rules = []

    @classmethod
    def default(cls) -> "MatchRules":
        return cls().by_method().by_full_url()

    def __len__(self) -> int:
        return len(self._rules)

    def by_method(self) -> "MatchRules":
        self._rules.append(lambda received, stored: received.method.upper() == stored.method.upper())
        return self

    def by_full_url(self) -> "MatchRules":
        """Exact URI string match, query string included"""
        self._rules.append(lambda received, stored: received.uri == stored.uri)
        return self

    def by_base_url(self) -> "MatchRules":
        """Match scheme, host, port and path, ignoring the query string"""

        def _base_url_rule(received: CapturedRequest, stored: CapturedRequest) -> bool:
            return _base_url(received.uri) == _base_url(stored.uri)

        self._rules.append(_base_url_rule)
        return self

    def by_header(self, name: str) -> "MatchRules":
        key = name.lower()
        self._rules.append(lambda received, stored: received.headers.get(key) == stored.headers.get(key))
        return self

    def by_headers(self) -> "MatchRules":
        self._rules.append(lambda received, stored: received.headers == stored.headers)
        return self

    def by_body(self, ignored_elements: Iterable[str] | None = None) -> "MatchRules":
        """
        Match request bodies. JSON bodies are compared as parsed values (so formatting is ignored)
        with any ignored_elements removed at every level before comparing.
        """
        ignored = set(ignored_elements or [])

        def _body_rule(received: CapturedRequest, stored: CapturedRequest) -> bool:
            return _normalize_body(received.body, ignored) == _normalize_body(stored.body, ignored)

        self._rules.append(_body_rule)
        return self

    def by_custom_rule(self, rule: MatchRule) -> "MatchRules":
        self._rules.append(rule)
        return self

    def by_everything(self) -> "MatchRules":
        return self.by_method().by_full_url().by_headers().by_body()

    def requests_match(self, received: CapturedRequest, stored: CapturedRequest) -> bool:
        for rule in self._rules:
            if not rule(received, stored):
                return False
        return True


def _base_url(uri: str) -> tuple:
    url = httpx.URL(uri)
    return (url.scheme, url.host, url.port, url.path)


def _normalize_body(body: bytes, ignored: set[str]) -> Any:
    if not body:
        return None
    try:
        parsed = json.loads(body)
    except ValueError:
        return body
    return _remove_elements(parsed, ignored)


def _remove_elements(value: Any, ignored: set[str]) -> Any:
    if not ignored:
        return value
    if isinstance(value, dict):
        return {k: _remove_elements(v, ignored) for k, v in value.items() if k not in ignored}
    if isinstance(value, list):
        return [_remove_elements(v, ignored) for v in value]
    return value
