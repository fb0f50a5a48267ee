"""Runtime settings, read from API_CONTRACT_DIFF_* environment variables."""

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from api_contract_diff.errors import ConfigurationError

ENV_PREFIX = "API_CONTRACT_DIFF_"


class Settings(BaseSettings):
    """Settings for document retrieval."""

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, env_ignore_empty=True)

    fetch_timeout: float = Field(default=30.0, gt=0, description="Timeout in seconds for URL retrieval")
    user_agent: str = Field(default="api-contract-diff", description="User-Agent header sent with URL retrieval")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the environment.

        Raises ConfigurationError when a variable holds an invalid value.
        """
        try:
            return cls()
        except ValidationError as e:
            raise ConfigurationError(_describe(e)) from e


def _describe(error: ValidationError) -> str:
    problems = [
        f"{ENV_PREFIX}{str(err['loc'][0]).upper()}: {err['msg']}" if err["loc"] else err["msg"]
        for err in error.errors()
    ]
    return "Invalid configuration: " + "; ".join(problems)
