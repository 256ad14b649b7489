from pydantic import field_validator
from pydantic_settings import BaseSettings

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    log_level: str = "INFO"
    database_url: str = "sqlite+aiosqlite:///data/hopp.db"
    fetch_timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    instagram_page_access_token: str = ""
    instagram_business_account_id: str = ""
    graph_api_base_url: str = "https://graph.facebook.com"
    graph_api_version: str = "v23.0"
    default_post_limit: int = 25
    placeholder_max_days: int = 30

    @field_validator("user_agent", mode="before")
    @classmethod
    def default_empty_user_agent(cls, v: str) -> str:
        if not v or not v.strip():
            return DEFAULT_USER_AGENT
        return v

    @field_validator("instagram_page_access_token", "instagram_business_account_id", mode="before")
    @classmethod
    def strip_credentials(cls, v: str | None) -> str:
        return (v or "").strip()

    model_config = {"env_prefix": "", "case_sensitive": False}


settings = Settings()
