from jose import JWTError, jwt
from household_ledger.config import settings
from household_ledger.core.exceptions import AuthenticationException


def decode_jwt(token: str) -> dict:
    """
    Decode and validate a JWT issued by the authentication provider.

    Args:
        token: JWT access token from Authorization header

    Returns:
        Decoded token payload with 'sub' (account id), 'exp', optional 'email'

    Raises:
        AuthenticationException: If token invalid, expired, or malformed
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])

        # Validate expiration (jose checks this automatically)
        exp = payload.get("exp")
        if exp is None:
            raise AuthenticationException("Token missing expiration")

        account_id: str = payload.get("sub")
        if account_id is None:
            raise AuthenticationException("Token missing user identifier")

        return payload

    except JWTError as e:
        raise AuthenticationException(f"Invalid token: {str(e)}")


def extract_identity(token: str) -> tuple[str, str | None]:
    """Extract (account_id, email) from JWT token"""
    payload = decode_jwt(token)
    return payload["sub"], payload.get("email")
