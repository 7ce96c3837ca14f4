from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True)

    ENVIRONMENT: str = "dev"

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 3030
    TLS_ENABLED: bool = False
    TLS_PORT: int = 3443
    CERT_PATH: str | None = None
    KEY_PATH: str | None = None

    # Optional directory with the browser client, served at "/"
    STATIC_DIR: str | None = None
    CORS_ALLOWED_ORIGINS: list[str] = ["*"]

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_FILE_PATH: str = "logs/logging_errors.log"
    LOG_EXCLUDED_PATHS: list[str] = ["/metrics", "/health"]

    # Liveness settings
    HEARTBEAT_INTERVAL_SECONDS: float = 30
    IDLE_TIMEOUT_SECONDS: float = 60
    IDLE_CHECK_INTERVAL_SECONDS: float = 30

    # ICE server settings
    STUN_URLS: list[str] = ["stun:stun.l.google.com:19302"]
    TURN_URLS: list[str] = [
        "turn:global.relay.metered.ca:80",
        "turn:global.relay.metered.ca:443",
    ]
    TURN_USERNAME: str = ""
    TURN_CREDENTIAL: str = ""


app_settings = Settings()
