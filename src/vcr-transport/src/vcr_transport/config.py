import logging

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from vcr_transport.advanced_settings import AdvancedSettings
from vcr_transport.cassette import Cassette
from vcr_transport.censors import Censors
from vcr_transport.matching import MatchRules
from vcr_transport.models import DelayPolicy, Mode


class RecordingConfig(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    dir: str = Field(default=".cassettes", alias="VCR_CASSETTE_DIR")
    format: str = Field(default="yaml", alias="VCR_CASSETTE_FORMAT", pattern="^(yaml|json)$")


class DelayConfig(BaseSettings):
    """
    simulate_original: replay with the duration recorded for each interaction
    manual_delay_ms: replay with a fixed delay (ignored when simulate_original is set)
    """

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    simulate_original: bool = Field(default=False, alias="VCR_SIMULATE_DELAY")
    manual_delay_ms: int | None = Field(default=None, alias="VCR_MANUAL_DELAY_MS", ge=0)

    def to_policy(self) -> DelayPolicy:
        if self.simulate_original:
            return DelayPolicy.original()
        if self.manual_delay_ms:
            return DelayPolicy.fixed(self.manual_delay_ms)
        return DelayPolicy.none()


class CensorConfig(BaseSettings):
    # values are JSON lists when set from environment variables, e.g. VCR_CENSOR_HEADERS='["authorization"]'
    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    headers: list[str] = Field(default=[], alias="VCR_CENSOR_HEADERS")
    query_parameters: list[str] = Field(default=[], alias="VCR_CENSOR_QUERY_PARAMETERS")
    body_elements: list[str] = Field(default=[], alias="VCR_CENSOR_BODY_ELEMENTS")

    def to_censors(self) -> Censors:
        return (
            Censors()
            .censor_headers_by_keys(self.headers)
            .censor_query_parameters_by_keys(self.query_parameters)
            .censor_body_elements_by_keys(self.body_elements)
        )


class Config(BaseSettings):
    """
    Configuration for recording/replaying
    """

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    mode: Mode = Field(default=Mode.AUTO, alias="VCR_MODE")
    recording: RecordingConfig = Field(default_factory=RecordingConfig)
    delay: DelayConfig = Field(default_factory=DelayConfig)
    censors: CensorConfig = Field(default_factory=CensorConfig)

    def to_advanced_settings(self, match_rules: MatchRules | None = None) -> AdvancedSettings:
        return AdvancedSettings(
            censors=self.censors.to_censors(),
            match_rules=match_rules or MatchRules.default(),
            delay=self.delay.to_policy(),
        )

    def get_cassette(self, name: str) -> Cassette:
        return Cassette(self.recording.dir, name, cassette_format=self.recording.format)


def get_config_from_env_vars(logger: logging.Logger) -> Config:
    """
    Load configuration from environment variables
    """
    try:
        config = Config()
    except ValidationError as e:
        logger.error("Invalid vcr configuration: %s", e)
        raise

    logger.info("📼 Mode                     : %s", config.mode.value)
    logger.info("📼 Cassette directory       : %s", config.recording.dir)
    logger.info("📼 Cassette format          : %s", config.recording.format)
    logger.info("⏱️ Delay                    : %s", config.delay.to_policy())
    return config
