from dataclasses import dataclass

from src.storefront.core.services.currency_service import CurrencyService
from src.storefront.core.services.database import DbSessionService
from src.storefront.core.services.email_service import EmailService
from src.storefront.core.services.jwt_service import JwtService
from src.storefront.core.services.redis_service import RedisService
from src.storefront.core.storage.otp_storage import OtpStorage
from src.storefront.runtime.config.config_data import ConfigData


@dataclass
class ApplicationDependencies:
    """Process-wide services built once at startup and shared by requests."""

    config: ConfigData
    database_service: DbSessionService
    redis_service: RedisService
    jwt_service: JwtService
    otp_storage: OtpStorage
    email_service: EmailService
    currency_service: CurrencyService
