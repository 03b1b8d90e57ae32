from .jwt_cookie_current_user import JwtCookieCurrentUser

__all__ = [
    "JwtCookieCurrentUser",
]
