from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Connection parameters; DATABASE_URL takes precedence when set.
    DATABASE_URL: str | None = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_DATABASE: str = "articles"

    # Identity service credential bundle (service-account JSON).
    CREDENTIALS_PATH: str = "credentials.json"

    # Prebuilt front-end bundle.
    STATIC_DIR: str = "dist"

    CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        url = URL.create(
            "postgresql+asyncpg",
            username=self.DB_USER,
            password=self.DB_PASSWORD or None,
            host=self.DB_HOST,
            port=self.DB_PORT,
            database=self.DB_DATABASE,
        )
        return url.render_as_string(hide_password=False)


settings = Settings()
