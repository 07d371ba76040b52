from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "Customer Registry"
    DATABASE_URL: str = "sqlite:///./customers.db"

    # Customer and address routers are mounted under this prefix
    API_PREFIX: str = "/api"

    LOG_LEVEL: str = "INFO"
    SQL_ECHO: bool = False

    DEFAULT_PAGE_SIZE: int = 10

    model_config = {"env_file": ".env"}


settings = Settings()
