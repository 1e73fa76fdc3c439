import os

from jose import JWTError, jwt


def decodeJWT(jwtoken: str):
    try:
        payload = jwt.decode(
            jwtoken,
            os.getenv("JWT_SECRET_KEY"),
            algorithms=[os.getenv("JWT_ALGORITHM", "HS256")],
        )
        return payload
    except JWTError:
        return None
