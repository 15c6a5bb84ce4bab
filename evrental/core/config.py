from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    RENTAL_API_BASE_URL: str = "http://localhost:5000/api"
    RENTAL_API_TOKEN: str | None = None
    RENTAL_API_TIMEOUT_SECONDS: float = 15.0

    WORKFLOW_SUCCESS_DELAY_SECONDS: float = 2.0
    WORKFLOW_CHAIN_DELAY_SECONDS: float = 1.5
    WORKFLOW_ENFORCE_PRECONDITIONS: bool = False

    # Seed values for the in-memory back end used in dev/local
    MOCK_LATE_FEE: float = 0
    MOCK_DEPOSIT_AMOUNT: float = 500000


settings = Settings()
