import httpx
import pytest

from vcr_transport import Cassette


class FakeUpstream:
    """
    Stands in for a real server: counts the requests that reach it
    and answers with the call number so recorded and live responses can be told apart
    """

    def __init__(self):
        self.calls = 0
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        self.requests.append(request)
        return httpx.Response(
            200,
            headers={"x-upstream": "fake"},
            json={"call": self.calls, "path": request.url.path},
        )

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def cassette_dir(tmp_path) -> str:
    return str(tmp_path / "cassettes")


@pytest.fixture
def cassette(cassette_dir) -> Cassette:
    return Cassette(cassette_dir, "test_cassette")
