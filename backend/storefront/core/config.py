from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """アプリケーション設定"""

    # データベース
    DATABASE_URL: str = "mysql+pymysql://storefront:storefront@db:3306/storefront?charset=utf8mb4"

    # Redis
    REDIS_URL: str = "redis://redis:6379/0"

    # サービス設定
    SITE_NAME: str = "Storefront"
    ALLOWED_ORIGINS: str = "http://localhost:3000"

    # セッション (管理画面ログインで発行される)
    SESSION_TIMEOUT_MINUTES: int = 60

    # レート制限
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    PROMOTION_VALIDATE_RATE_LIMIT: str = "30/minute"
    ADMIN_WRITE_RATE_LIMIT: str = "20/minute"

    # 環境
    ENV: str = "development"
    DEBUG: bool = True

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
