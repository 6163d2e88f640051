import logging
from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):

    #App
    app_name: str = "Loopa Marketplace API"
    app_version: str = "1.0.0"
    log_level: str = "INFO"
    port: int = 8000

    #Database
    database_url: Optional[str] = None
    database_name: Optional[str] = None

    #Orders
    missing_product_policy: Literal["degrade", "strict"] = "degrade"
    order_number_attempts: int = 5

    #Catalog
    default_radius_miles: float = 10000.0

    #Samples
    sample_fallback_latitude: float = 40.94
    sample_fallback_longitude: float = -123.63
    avatar_base_url: str = "https://cdn.loopa.app/avatars"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(settings: Settings):
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
