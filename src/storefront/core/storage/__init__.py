from .otp_storage import (
    InMemoryOtpStorage,
    OtpStorage,
    RedisOtpStorage,
    build_otp_storage,
)

__all__ = ["OtpStorage", "InMemoryOtpStorage", "RedisOtpStorage", "build_otp_storage"]
