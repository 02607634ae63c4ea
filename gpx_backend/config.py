import os
from pathlib import Path
from dotenv import load_dotenv

# Always load .env from the package folder
load_dotenv(Path(__file__).resolve().parent / ".env")


def _get_bool(key: str, default: bool = False) -> bool:
    return os.getenv(key, str(default)).strip().lower() in ("true", "1", "yes", "on")


APP_HOST = os.getenv("APP_HOST", "127.0.0.1")
APP_PORT = int(os.getenv("APP_PORT", "8000"))

ENV = os.getenv("ENV", "dev").strip()
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]

# Server-side operations after a GPX document has been generated
GPX_SAVE_MODE = _get_bool("GPX_SAVE_MODE")
GPX_SAVE_DIRECTORY = os.getenv("GPX_SAVE_DIRECTORY", "gpx")
ADDITIONAL_COMMAND = os.getenv("ADDITIONAL_COMMAND", "").strip()

FRONTEND_BUILD_DIR = Path(
    os.getenv("FRONTEND_BUILD_DIR", str(Path(__file__).resolve().parent.parent / "frontend" / "build"))
)

# Upper bound on generated points per request
MAX_ROUTE_POINTS = int(os.getenv("MAX_ROUTE_POINTS", "1000000"))
