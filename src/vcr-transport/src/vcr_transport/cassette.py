import logging
import threading

from vcr_transport.matching import MatchRules
from vcr_transport.models import Interaction
from vcr_transport.persistence import CassettePersister, get_persister

logger = logging.getLogger(__name__)


class Cassette:
    """
    A named, durable collection of interactions stored in a folder.

    Interactions are loaded lazily on the first read. Writes are serialized by a lock and
    re-read the persisted cassette before updating it, so a write never discards
    interactions saved since the cassette was loaded.
    """

    _interactions: list[Interaction] | None

    def __init__(
        self,
        folder: str,
        name: str,
        cassette_format: str = "yaml",
        persister: CassettePersister | None = None,
    ):
        self._folder = folder
        self._name = name
        self._persister = persister or get_persister(cassette_format, folder, name)
        self._interactions = None
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def folder(self) -> str:
        return self._folder

    @property
    def path(self) -> str:
        return self._persister.path

    @property
    def num_interactions(self) -> int:
        return len(self.read())

    def read(self) -> list[Interaction]:
        interactions = self._interactions
        if interactions is None:
            with self._lock:
                if self._interactions is None:
                    self._interactions = self._persister.load_all()
                    logger.info("📼 Loaded %s interaction(s) from cassette %s", len(self._interactions), self.path)
                interactions = self._interactions
        return list(interactions)

    def upsert(self, interaction: Interaction, match_rules: MatchRules, bypass_search: bool = False):
        """
        Add an interaction, replacing (in place) the first stored interaction matching it under match_rules.

        bypass_search=True always appends - use when the caller has already searched for a match.
        The cassette has been saved when this returns; errors from saving are raised.
        """
        with self._lock:
            interactions = self._persister.load_all()

            replaced = False
            if not bypass_search:
                for index, existing in enumerate(interactions):
                    if match_rules.requests_match(interaction.request, existing.request):
                        interactions[index] = interaction
                        replaced = True
                        break
            if not replaced:
                interactions.append(interaction)

            self._persister.save_all(interactions)
            self._interactions = interactions

        logger.debug(
            "%s interaction for %s %s in cassette %s",
            "Replaced" if replaced else "Added",
            interaction.request.method,
            interaction.request.uri,
            self._name,
        )

    def erase(self):
        with self._lock:
            self._persister.erase()
            self._interactions = []
