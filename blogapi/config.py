import os
from datetime import timedelta

from dotenv import load_dotenv
load_dotenv()

DATABASE_URL = os.getenv("DATABASE", "sqlite:///./blog.db")

# Access and refresh tokens are always signed with RS256, each with its own key pair
JWT_ALGORITHM = "RS256"

ACCESS_TOKEN_LIFETIME = timedelta(minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "10")))
REFRESH_TOKEN_LIFETIME = timedelta(days=int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "30")))

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if origin.strip()]

REFRESH_COOKIE_NAME = "jwt"

refresh_cookie_options = {
    "httponly": True,
    "secure": True,
    "samesite": "none",
    "max_age": int(REFRESH_TOKEN_LIFETIME.total_seconds()),
}

clear_cookie_options = {
    "httponly": True,
    "secure": True,
    "samesite": "none",
}


def read_key(name: str) -> str:
    """
    Returns a PEM key from the environment.

    The key is taken from ``name`` directly (literal ``\\n`` sequences are
    accepted so the key fits on one line of a .env file) or from the file
    pointed to by ``<name>_FILE``.
    """
    value = os.getenv(name)
    if value:
        return value.replace("\\n", "\n")

    path = os.getenv(f"{name}_FILE")
    if path:
        with open(path, "r", encoding="utf-8") as key_file:
            return key_file.read()

    raise RuntimeError(f"{name} is not configured")
