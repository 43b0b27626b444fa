from pydantic_settings import BaseSettings
from typing import List, Optional
from urllib.parse import quote_plus

class Settings(BaseSettings):
    postgres_user: str = "filemarket"
    postgres_password: str = "filemarket"
    postgres_db: str = "filemarket"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    # full SQLAlchemy URL, wins over the postgres_* parts when set
    sqlalchemy_url: Optional[str] = None

    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    bcrypt_rounds: int = 12

    upload_dir: str = "uploads"
    frontend_url: str = "http://localhost:5173"

    brevo_api_key: Optional[str] = None
    mail_from: str = "no-reply@filemarket.local"
    store_name: str = "File Market"

    admin_email: str = "admin@filemarket.com"
    admin_password: str = "Admin123!"

    # slowapi limit strings, counted per client address
    rate_limit_enabled: bool = True
    rate_limit_default: str = "100 per 15 minutes"
    rate_limit_auth: str = "5 per 15 minutes"
    rate_limit_upload: str = "10 per hour"
    rate_limit_payment: str = "20 per hour"

    env: str = "local"
    log_level: str = "INFO"
    cors_origins: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    @property
    def database_url(self):
        if self.sqlalchemy_url:
            return self.sqlalchemy_url
        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"

settings = Settings()
