import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="REFORMA_", extra="ignore")

    db_url: str = "sqlite:///reforma.db"

    log_level: str = "INFO"
    log_json: bool = False
    log_file: str = ""  # empty logs to stderr

    anthropic_api_key: str = ""
    estimator_model: str = "claude-opus-4-5"
    estimator_max_tokens: int = 2000
    estimator_timeout: float = 60.0  # seconds

    extraction_locale: str = "en"
    extraction_schema_version: int = 1

    currency_symbol: str = "R$"
    message_recipient: str = "pati"
    message_phone: str = ""  # wa.me number, digits only
    months_back: int = 12

    def has_estimator(self) -> bool:
        if not self.anthropic_api_key:
            logger.warning(
                "REFORMA_ANTHROPIC_API_KEY is not set — cost estimates and document "
                "extraction are disabled."
            )
            return False
        return True


settings = Settings()
