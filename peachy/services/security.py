from datetime import datetime, timedelta, timezone
import jwt
from ..core.config import Settings, settings as default_settings

ALGORITHM = "HS256"


def create_access_token(
    sub: str, *, is_admin: bool = False, minutes: int | None = None, config: Settings = default_settings
) -> str:
    exp_min = minutes if minutes is not None else config.ACCESS_TOKEN_MIN
    expire = datetime.now(timezone.utc) + timedelta(minutes=exp_min)
    payload = {"sub": sub, "admin": is_admin, "exp": expire}
    return jwt.encode(payload, config.SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str, config: Settings = default_settings) -> dict:
    return jwt.decode(token, config.SECRET_KEY, algorithms=[ALGORITHM])
