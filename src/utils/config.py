from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Banco relacional (qualquer URL do SQLAlchemy; sqlite por padrão)
    DATABASE_URL: str = "sqlite:///./flashcards.db"
    SQL_ECHO: bool = False

    # Tokens de acesso
    JWT_SECRET_KEY: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    LOG_LEVEL: str = "INFO"


settings = Settings()
