from pathlib import Path

from pydantic_settings import BaseSettings

ROOT_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    app_name: str = "Catalyst Chat"
    version: str = "2.0.0"
    environment: str = "development"  # development | production
    debug: bool = False

    # Paths
    db_path: Path = ROOT_DIR / "database" / "chat.db"

    # Sessions
    secret_key: str = "change-me-in-production"
    session_cookie: str = "catalyst_session"
    session_max_age: int = 60 * 60 * 24 * 7

    # LLM
    llm_provider: str = "gemini"  # gemini | catalyst
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    catalyst_api_url: str = "https://zero-two-apis.com.br/catalyst/texto/imagem"
    catalyst_api_key: str = ""
    llm_timeout: float = 20.0

    # Chat
    context_window: int = 10
    max_message_length: int = 1000

    # Rate limits: (requests, window seconds)
    rate_limit_auth: tuple[int, int] = (5, 15 * 60)
    rate_limit_chat: tuple[int, int] = (10, 60)
    rate_limit_general: tuple[int, int] = (100, 15 * 60)

    # Server
    host: str = "0.0.0.0"
    port: int = 5000
    forwarded_allow_ips: str = "127.0.0.1"  # proxies whose X-Forwarded-For is honoured
    cors_origins: list[str] = ["*"]

    model_config = {
        "env_file": str(ROOT_DIR / ".env"),
        "env_prefix": "CATALYST_",
    }

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


settings = Settings()
