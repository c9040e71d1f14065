import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from elibrary import config
from elibrary.schemas.all_schema import TokenData

logger = logging.getLogger("elibrary.auth")


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or config.ACCESS_TOKEN_EXPIRE)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.ALGORITHM)


def create_user_token(user) -> str:
    return create_access_token({"sub": str(user.id), "role": user.role})


def verify_token(token: str, credential_exception) -> TokenData:
    """Decode a signed token; raise ``credential_exception`` if it is unusable.

    Signature and ``exp`` are checked by ``jwt.decode``.
    """
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
        subject = payload.get("sub")
        if subject is None:
            raise credential_exception
        token_data = TokenData(user_id=int(subject), role=payload.get("role"))
    except (JWTError, ValueError) as e:
        logger.debug("Rejected token: %s", e)
        raise credential_exception

    return token_data
