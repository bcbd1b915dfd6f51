from pydantic_settings import BaseSettings
from pydantic import Field
from decimal import Decimal
from typing import Optional

class Settings(BaseSettings):
    # Database
    db_host: str = Field(default="localhost", alias='DB_HOST')
    db_port: int = Field(default=5432, alias='DB_PORT')
    db_user: str = Field(default="postgres", alias='DB_USER')
    db_password: str = Field(default="", alias='DB_PASSWORD')
    db_name: str = Field(default="tixhub", alias='DB_NAME')

    # Auth - tokens issued by the hosted auth provider
    jwt_secret: str = Field(alias='JWT_SECRET')
    jwt_audience: str = Field(default="authenticated", alias='JWT_AUDIENCE')

    # Monnify - Pasarela de pagos (monnify.com)
    monnify_base_url: str = Field(default="https://sandbox.monnify.com", alias='MONNIFY_BASE_URL')
    monnify_api_key: Optional[str] = Field(default=None, alias='MONNIFY_API_KEY')
    monnify_secret_key: Optional[str] = Field(default=None, alias='MONNIFY_SECRET_KEY')
    monnify_contract_code: Optional[str] = Field(default=None, alias='MONNIFY_CONTRACT_CODE')
    monnify_currency: str = Field(default="NGN", alias='MONNIFY_CURRENCY')

    # AWS SES (purchase confirmation emails)
    aws_access_key_id: Optional[str] = Field(default=None, alias='AWS_ACCESS_KEY_ID')
    aws_secret_access_key: Optional[str] = Field(default=None, alias='AWS_SECRET_ACCESS_KEY')
    aws_region: Optional[str] = Field(default=None, alias='AWS_REGION')
    email_from: Optional[str] = Field(default=None, alias='EMAIL_FROM')

    # App settings
    app_env: str = Field(default="development", alias='APP_ENV')
    frontend_url: str = Field(default="http://localhost:8080", alias='FRONTEND_URL')
    port: int = Field(default=8001, alias='PORT')
    host: str = Field(default="0.0.0.0", alias='HOST')
    debug: bool = Field(default=True, alias='DEBUG')
    cors_origins: str = Field(default="http://localhost:8080", alias='CORS_ORIGINS')

    # Business rules
    service_fee_rate: Decimal = Field(default=Decimal("0.05"), alias='SERVICE_FEE_RATE')
    pending_order_timeout_minutes: int = Field(default=30, alias='PENDING_ORDER_TIMEOUT_MINUTES')

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def db_connection_params(self) -> dict:
        return {
            "host": self.db_host,
            "port": self.db_port,
            "user": self.db_user,
            "password": self.db_password,
            "database": self.db_name,
        }

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def payment_callback_url(self) -> str:
        return f"{self.frontend_url.rstrip('/')}/payment/callback"

settings = Settings()
