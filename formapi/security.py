import base64
import binascii
import datetime
import logging
import secrets
from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.crypto.scrypt import scrypt
from passlib.utils import consteq

from formapi.config import config
from formapi.database import database, user_table
from formapi.errors import Conflict, Forbidden, InvalidToken, NotFound, Unauthenticated
from formapi.models.user import User

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

# scrypt parameters; stored digests are "<hex key>.<hex salt>"
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
KEY_LENGTH = 64
SALT_BYTES = 16
DIGEST_SEPARATOR = "."


def access_token_expire_minutes() -> int:
    return config.ACCESS_TOKEN_EXPIRE_MINUTES


def _derive_key(password: str, salt: str) -> bytes:
    return scrypt(
        password.encode("utf-8"),
        salt.encode("utf-8"),
        SCRYPT_N,
        SCRYPT_R,
        SCRYPT_P,
        KEY_LENGTH,
    )


def get_password_hash(password: str) -> str:
    salt = secrets.token_hex(SALT_BYTES)
    key = _derive_key(password, salt)
    return f"{key.hex()}{DIGEST_SEPARATOR}{salt}"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check ``plain_password`` against a stored digest in constant time.

    Returns False for any malformed digest instead of raising.
    """
    if not isinstance(plain_password, str) or not isinstance(hashed_password, str):
        return False
    stored_hex, sep, salt = hashed_password.rpartition(DIGEST_SEPARATOR)
    if not sep or not stored_hex or not salt:
        return False
    try:
        stored_key = binascii.unhexlify(stored_hex)
    except (binascii.Error, ValueError):
        return False
    # consteq must only ever see equal-length inputs
    if len(stored_key) != KEY_LENGTH:
        return False
    supplied_key = _derive_key(plain_password, salt)
    return consteq(stored_key, supplied_key)


def create_access_token(user_id: int, username: str) -> str:
    logger.debug("Creating access token", extra={"user_id": user_id})
    now = datetime.datetime.now(datetime.timezone.utc)
    expire = now + datetime.timedelta(minutes=access_token_expire_minutes())
    jwt_data = {
        "sub": str(user_id),
        "username": username,
        "type": "access",
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(jwt_data, key=config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def _has_canonical_signature(token: str) -> bool:
    # base64url ignores the spare low bits of the last character, so two
    # spellings can decode to the same signature; accept only the one we emit
    signature = token.rpartition(".")[2]
    try:
        raw = base64.urlsafe_b64decode(signature + "=" * (-len(signature) % 4))
    except (binascii.Error, ValueError):
        return False
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii") == signature


def get_user_id_from_token(token: Optional[str]) -> int:
    """Resolve an access token to a user id.

    Every failure raises the same InvalidToken so callers cannot tell a
    missing, tampered or expired token apart.
    """
    if not token:
        raise InvalidToken()
    if not _has_canonical_signature(token):
        logger.debug("Rejected token with non-canonical signature encoding")
        raise InvalidToken()
    try:
        payload = jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
    except ExpiredSignatureError as e:
        logger.debug("Rejected expired token")
        raise InvalidToken() from e
    except JWTError as e:
        logger.debug(f"Rejected invalid token: {e}")
        raise InvalidToken() from e

    if payload.get("type") != "access":
        logger.debug("Rejected token with wrong type")
        raise InvalidToken()
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError) as e:
        logger.debug("Rejected token without a usable 'sub' claim")
        raise InvalidToken() from e


def authorize_owner(user_id: int, owner_id: int) -> None:
    if user_id != owner_id:
        logger.info(
            "Ownership check failed", extra={"user_id": user_id, "owner_id": owner_id}
        )
        raise Forbidden()


async def get_user(username: str):
    """Fetch a user row, digest included, for credential checks."""
    query = user_table.select().where(user_table.c.username == username)
    return await database.fetch_one(query)


async def get_user_by_id(user_id: int) -> Optional[User]:
    query = user_table.select().where(user_table.c.id == user_id)
    result = await database.fetch_one(query)
    if result:
        return User(
            id=result.id,
            username=result.username,
            name=result.name,
            created_at=result.created_at,
        )
    return None


async def create_user(username: str, password: str, name: Optional[str] = None) -> User:
    query = user_table.insert().values(
        username=username,
        password=get_password_hash(password),
        name=name,
        created_at=datetime.datetime.now(datetime.timezone.utc),
    )
    logger.debug(query)
    try:
        user_id = await database.execute(query)
    except Exception as e:
        # a concurrent registration won the unique index; the driver's
        # IntegrityError type depends on the backend in use
        if await get_user(username) is not None:
            raise Conflict("Username already exists") from e
        raise
    return await get_user_by_id(user_id)


async def authenticate_user(username: str, password: str) -> User:
    logger.debug("Authenticating user", extra={"username": username})
    user = await get_user(username)
    if not user or not verify_password(password, user.password):
        raise Unauthenticated("Invalid username or password")
    return User(
        id=user.id,
        username=user.username,
        name=user.name,
        created_at=user.created_at,
    )


async def get_current_user_id(
    request: Request,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> int:
    if credentials is None:
        raise Unauthenticated()
    user_id = get_user_id_from_token(credentials.credentials)
    request.state.user_id = user_id
    return user_id


async def get_current_user(user_id: Annotated[int, Depends(get_current_user_id)]) -> User:
    user = await get_user_by_id(user_id)
    if user is None:
        raise NotFound("User not found")
    return user
