from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_name: str = "Pet Adoption API"
    debug: bool = False
    cors_origins: List[str] = ["*"]

    # Database
    database_url: str = "mongodb://localhost:27017"
    database_name: str = "petAdoption"

    # Session tokens
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    token_expire_minutes: int = 60
    cookie_name: str = "token"
    cookie_secure: bool = False

    # Payments
    stripe_secret_key: str = ""
    currency: str = "usd"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @property
    def cookie_samesite(self) -> str:
        return "none" if self.cookie_secure else "strict"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
