from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")
    DATABASE_URL: str
    ENV: str = "dev"

    STRAVA_CLIENT_ID: str
    STRAVA_CLIENT_SECRET: str
    STRAVA_REDIRECT_URI: str
    STRAVA_SCOPES: str = "read,activity:read_all"
    STRAVA_TIMEOUT_S: float = 30.0

    # where the callback sends the browser once the OAuth exchange is done
    FRONTEND_URL: str = "http://localhost:3000"

    # identity used when a request carries no userId
    DEFAULT_USER_ID: str = "default-user"

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"

settings = Settings()
