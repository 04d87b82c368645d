from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from urllib.parse import quote_plus


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file="diamondapi/.env",
        env_file_encoding="utf-8",
        extra="allow",
    )
    # Application
    APP_NAME: str = "Diamond Gifting API"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USERNAME: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DATABASE: str = "postgres"
    POSTGRES_SCHEMA: str = "public"

    # DATABASE_URL이 설정되면 POSTGRES_* 값보다 우선함
    DATABASE_URL: Optional[str] = None
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    @property
    def database_url(self) -> str:
        """Construct database URL from individual components"""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        # URL encode the password to handle special characters
        encoded_password = quote_plus(self.POSTGRES_PASSWORD)
        return f"postgresql+psycopg2://{self.POSTGRES_USERNAME}:{encoded_password}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DATABASE}"

    # Security
    SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Order lifecycle
    READY_FOR_GIFTING_AFTER_DAYS: int = 7  # FOLLOWED 상태 유지 후 자동 전환까지 일수
    SWEEPER_ENABLED: bool = True
    SWEEPER_INTERVAL_MINUTES: int = 15
    SWEEP_ON_ORDER_LIST: bool = True  # 주문 목록 조회 전 스윕 실행 여부
    TX_MAX_ATTEMPTS: int = 2  # 동시성 충돌 시 최초 시도 + 1회 재시도

    # Listing
    ORDER_LIST_DEFAULT_LIMIT: int = 200
    ORDER_LIST_MAX_LIMIT: int = 500

    # Supplier defaults
    DEFAULT_LOW_BALANCE_THRESHOLD: int = 1000

    # Google Sheets mirror
    GOOGLE_SERVICE_ACCOUNT_EMAIL: Optional[str] = None
    GOOGLE_PRIVATE_KEY: Optional[str] = None
    GOOGLE_SHEET_NAME: str = "Sheet1"
    SHEET_SYNC_MAX_WORKERS: int = 2

    # Player ID verification
    PLAYER_VERIFY_URL: str = (
        "https://moogold.com/wp-content/plugins/id-validation-new/id-validation-ajax.php"
    )
    PLAYER_VERIFY_TIMEOUT_SECONDS: float = 10.0


settings = Settings()
