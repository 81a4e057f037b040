from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Mode(str, Enum):
    """
    Selects how the handler treats every request:

    record: always make the real request and store the interaction (overwriting a matching one)
    replay: only return stored interactions, fail if there is no match
    auto: replay a matching interaction if there is one, otherwise record
    bypass: make the real request without reading or writing the cassette
    """

    RECORD = "record"
    REPLAY = "replay"
    AUTO = "auto"
    BYPASS = "bypass"


@dataclass
class CapturedRequest:
    method: str
    uri: str
    # header names are lower-cased, values keep their order of appearance
    headers: dict[str, list[str]] = field(default_factory=dict)
    body: bytes = b""


@dataclass
class CapturedResponse:
    status_code: int
    headers: dict[str, list[str]] = field(default_factory=dict)
    body: bytes = b""
    http_version: str = "HTTP/1.1"


@dataclass
class Interaction:
    request: CapturedRequest
    response: CapturedResponse
    recorded_at: datetime
    # wall-clock duration of the real request that produced this interaction
    duration_ms: int

    def __post_init__(self):
        if self.duration_ms < 0:
            raise ValueError(f"duration_ms must be >= 0 (got {self.duration_ms})")


class DelayKind(str, Enum):
    NONE = "none"
    ORIGINAL = "original"
    FIXED = "fixed"


@dataclass(frozen=True)
class DelayPolicy:
    """
    How long to wait before returning a replayed response:
    not at all, the duration recorded with the interaction, or a fixed number of milliseconds
    """

    kind: DelayKind = DelayKind.NONE
    fixed_ms: int = 0

    def __post_init__(self):
        if self.fixed_ms < 0:
            raise ValueError(f"fixed_ms must be >= 0 (got {self.fixed_ms})")

    @classmethod
    def none(cls) -> "DelayPolicy":
        return cls(kind=DelayKind.NONE)

    @classmethod
    def original(cls) -> "DelayPolicy":
        return cls(kind=DelayKind.ORIGINAL)

    @classmethod
    def fixed(cls, delay_ms: int) -> "DelayPolicy":
        return cls(kind=DelayKind.FIXED, fixed_ms=delay_ms)
