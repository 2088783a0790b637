from fastapi import Request
from jose import JWTError, jwt
from pydantic import BaseModel
from typing import Optional

from shop_insights.core.config import get_settings
from shop_insights.core.exceptions import AuthenticationError

settings = get_settings()

class CurrentUser(BaseModel):
    id: str
    email: Optional[str] = None

def _bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("authorization")
    if not auth_header:
        return None
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError("Invalid authorization header format")
    return token.strip()

def decode_user(token: str) -> CurrentUser:
    """
    Validate an identity-provider JWT and return the user it names.
    The ``sub`` claim is the user id.
    """
    if len(token.split('.')) != 3:
        raise AuthenticationError("Invalid token format")
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except (JWTError, UnicodeDecodeError) as e:
        raise AuthenticationError(f"Could not validate credentials: {str(e)}")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Could not validate credentials")
    return CurrentUser(id=str(user_id), email=payload.get("email"))

async def get_optional_user(request: Request) -> Optional[CurrentUser]:
    """
    The signed-in user, or None for anonymous requests.
    Anonymous requests are refused when REQUIRE_AUTH is set.
    """
    token = _bearer_token(request)
    if token is None:
        if get_settings().REQUIRE_AUTH:
            raise AuthenticationError("Not authenticated")
        return None
    return decode_user(token)
