from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # SECRET_KEY / DB_PATH come from the environment or .env
    SECRET_KEY: str = Field("change-me", validation_alias="SECRET_KEY")
    DB_PATH:   str = Field("./charger_qc.db", validation_alias="DB_PATH")

    # Token settings
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12

    # Record store collection: artifacts/{APP_ID}/public/data/chargers
    APP_ID: str = "default-app-id"

    # Label printing
    PUBLIC_BASE_URL: str = "http://localhost:3000/"
    QR_ENDPOINT: str = "https://api.qrserver.com/v1/create-qr-code/"
    QR_SIZE: str = "250x250"

    # First admin account, created on startup when the users table is empty
    ADMIN_EMAIL: str | None = None
    ADMIN_PASSWORD: str | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def chargers_path(self) -> str:
        return f"artifacts/{self.APP_ID}/public/data/chargers"

settings = Settings()
