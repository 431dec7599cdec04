from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_env: str = "dev"
    auth_mode: str = "dev"  # dev | forwardauth
    root_path: str = ""

    postgres_db: str = "family_locator"
    postgres_user: str = "family_user"
    postgres_password: str = "family_pass"
    postgres_host: str = "db"
    postgres_port: int = 5432
    database_url_override: str = ""

    # FCM-compatible push gateway
    push_endpoint: str = "https://fcm.googleapis.com/fcm/send"
    push_server_key: str = ""
    push_timeout_seconds: float = 10.0

    log_level: str = "INFO"
    log_format: str = "json"  # json | text

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+psycopg2://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


settings = Settings()
