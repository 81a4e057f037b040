import base64
import json
import logging
import os
from datetime import datetime, timezone
from typing import IO, Any

import yaml

from vcr_transport import constants
from vcr_transport.models import CapturedRequest, CapturedResponse, Interaction

logger = logging.getLogger(__name__)


class CassettePersister:
    """
    Loads and saves all interactions for a single cassette file.
    Subclasses provide the file extension and the serialization of the cassette data.
    """

    file_extension: str

    def __init__(self, cassette_dir: str, cassette_name: str):
        self._cassette_dir = cassette_dir
        self._cassette_name = cassette_name

    @property
    def path(self) -> str:
        return os.path.join(self._cassette_dir, self._cassette_name + "." + self.file_extension)

    def load_all(self) -> list[Interaction]:
        cassette_path = self.path
        if not os.path.exists(cassette_path):
            logger.debug("No cassette file found at %s", cassette_path)
            return []

        with open(cassette_path, "r", encoding="utf-8") as f:
            cassette_data = self._load(f)
        if not cassette_data:
            return []
        return [_interaction_from_dict(interaction) for interaction in cassette_data.get("interactions", [])]

    def save_all(self, interactions: list[Interaction]):
        cassette_data = {
            "interactions": [_interaction_to_dict(interaction) for interaction in interactions],
            "version": constants.CASSETTE_FORMAT_VERSION,
        }

        cassette_path = self.path
        self.ensure_cassette_dir_exists()
        # write to a temporary file and swap it in so that readers never see a partial cassette
        temp_path = cassette_path + ".tmp"
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                self._dump(cassette_data, f)
            os.replace(temp_path, cassette_path)
        except Exception:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise
        logger.info("💾 Cassette saved to %s", cassette_path)

    def erase(self):
        if os.path.exists(self.path):
            os.remove(self.path)
            logger.info("📼 Cassette erased: %s", self.path)

    def ensure_cassette_dir_exists(self):
        if not os.path.exists(self._cassette_dir):
            os.makedirs(self._cassette_dir)

    def _load(self, stream: IO[str]) -> dict | None:
        raise NotImplementedError()

    def _dump(self, cassette_data: dict, stream: IO[str]):
        raise NotImplementedError()


class YamlCassettePersister(CassettePersister):
    file_extension = "yaml"

    def _load(self, stream: IO[str]) -> dict | None:
        return yaml.load(stream, Loader=yaml.SafeLoader)

    def _dump(self, cassette_data: dict, stream: IO[str]):
        yaml.dump(cassette_data, stream=stream, Dumper=yaml.SafeDumper, sort_keys=False, allow_unicode=True)


class JsonCassettePersister(CassettePersister):
    file_extension = "json"

    def _load(self, stream: IO[str]) -> dict | None:
        return json.load(stream)

    def _dump(self, cassette_data: dict, stream: IO[str]):
        json.dump(cassette_data, stream, indent=2)


_persisters = {
    "yaml": YamlCassettePersister,
    "json": JsonCassettePersister,
}


def get_persister(cassette_format: str, cassette_dir: str, cassette_name: str) -> CassettePersister:
    persister_type = _persisters.get(cassette_format)
    if not persister_type:
        raise ValueError(f"Invalid cassette format: {cassette_format} (allowed: {list(_persisters)})")
    return persister_type(cassette_dir, cassette_name)


def _body_to_dict(body: bytes) -> dict:
    try:
        # simplify format for editing cassette files
        return {"string": body.decode("utf-8")}
    except UnicodeDecodeError:
        return {"base64_string": base64.b64encode(body).decode("ascii")}


def _body_from_dict(body: Any) -> bytes:
    if body is None:
        return b""
    if isinstance(body, str):
        return body.encode("utf-8")
    if "base64_string" in body:
        return base64.b64decode(body["base64_string"])
    return (body.get("string") or "").encode("utf-8")


def _interaction_to_dict(interaction: Interaction) -> dict:
    request = interaction.request
    response = interaction.response
    return {
        "request": {
            "method": request.method,
            "uri": request.uri,
            "headers": request.headers,
            "body": _body_to_dict(request.body),
        },
        "response": {
            "status": {"code": response.status_code},
            "http_version": response.http_version,
            "headers": response.headers,
            "body": _body_to_dict(response.body),
        },
        "recorded_at": interaction.recorded_at.isoformat(),
        "duration_ms": interaction.duration_ms,
    }


def _interaction_from_dict(interaction: dict) -> Interaction:
    request = interaction["request"]
    response = interaction["response"]

    recorded_at = interaction.get("recorded_at")
    if recorded_at is None:
        recorded_at = datetime.fromtimestamp(0, tz=timezone.utc)
    elif not isinstance(recorded_at, datetime):
        # hand-edited YAML may contain an unquoted timestamp which is loaded as a datetime already
        recorded_at = datetime.fromisoformat(recorded_at)

    return Interaction(
        request=CapturedRequest(
            method=request["method"],
            uri=request["uri"],
            headers=request.get("headers") or {},
            body=_body_from_dict(request.get("body")),
        ),
        response=CapturedResponse(
            status_code=response["status"]["code"],
            headers=response.get("headers") or {},
            body=_body_from_dict(response.get("body")),
            http_version=response.get("http_version", "HTTP/1.1"),
        ),
        recorded_at=recorded_at,
        duration_ms=interaction.get("duration_ms", 0),  # not required in hand-written cassettes so default to 0
    )
