from dataclasses import dataclass, field

from vcr_transport.censors import Censors
from vcr_transport.converter import InteractionConverter
from vcr_transport.matching import MatchRules
from vcr_transport.models import DelayPolicy


@dataclass
class AdvancedSettings:
    """
    Optional settings for recording/replaying.
    Defaults: no censoring, match on method + full URL, default converter, no simulated delay.
    """

    censors: Censors = field(default_factory=Censors)
    match_rules: MatchRules = field(default_factory=MatchRules.default)
    interaction_converter: InteractionConverter = field(default_factory=InteractionConverter)
    delay: DelayPolicy = field(default_factory=DelayPolicy.none)
