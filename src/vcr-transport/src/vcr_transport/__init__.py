# imports here allow aggregrating types under vcr_transport
# pylint: disable=useless-import-alias
from .advanced_settings import AdvancedSettings as AdvancedSettings
from .cassette import Cassette as Cassette
from .censors import Censors as Censors
from .censors import CensorElement as CensorElement
from .clients import new_async_http_client as new_async_http_client
from .clients import new_async_http_client_from_config as new_async_http_client_from_config
from .clients import new_http_client as new_http_client
from .clients import new_http_client_from_config as new_http_client_from_config
from .config import Config as Config
from .config import get_config_from_env_vars as get_config_from_env_vars
from .converter import InteractionConverter as InteractionConverter
from .errors import NoMatchingInteractionError as NoMatchingInteractionError
from .errors import PersistenceError as PersistenceError
from .errors import VCRError as VCRError
from .handler import RecordReplayHandler as RecordReplayHandler
from .matching import MatchRules as MatchRules
from .models import CapturedRequest as CapturedRequest
from .models import CapturedResponse as CapturedResponse
from .models import DelayPolicy as DelayPolicy
from .models import Interaction as Interaction
from .models import Mode as Mode
from .persistence import JsonCassettePersister as JsonCassettePersister
from .persistence import YamlCassettePersister as YamlCassettePersister
from .transport import AsyncVCRTransport as AsyncVCRTransport
from .transport import VCRTransport as VCRTransport
