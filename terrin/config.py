from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "postgresql+asyncpg://terrin:terrin_dev@db:5432/terrin"

    # Identity provider (bearer JWTs)
    IDENTITY_JWT_SECRET: str = "dev-identity-secret-not-for-production"
    IDENTITY_JWT_ALGORITHM: str = "HS256"
    IDENTITY_ISSUER: str = ""
    IDENTITY_AUDIENCE: str = ""
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    ALLOWED_ORIGINS: str = "*"

    # AI Provider (OpenAI-compatible)
    AI_API_KEY: str = "mock_ai_key"
    AI_BASE_URL: str = "https://api.openai.com/v1"
    AI_MODEL: str = "gpt-4o"
    AI_ESTIMATE_MODEL: str = "gpt-4o-mini"
    AI_TIMEOUT_SECONDS: float = 60.0

    # Stripe
    STRIPE_SECRET_KEY: str = "mock_stripe_key"
    STRIPE_PUBLISHABLE_KEY: str = "mock_stripe_pub_key"
    STRIPE_WEBHOOK_SECRET: str = ""
    PLATFORM_FEE_PERCENT: float = 5.0

    # Storage
    STORAGE_LOCAL_PATH: str = "./uploads"
    STORAGE_PUBLIC_URL: str = "/uploads"

    # App
    APP_ENV: str = "development"
    APP_URL: str = "http://localhost:8000"
    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
