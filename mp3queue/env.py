import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _read_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value >= 0 else default


# Backend serving fetch-videos / download-mp3 / list-downloads
BACKEND_URL = os.getenv('MP3QUEUE_BACKEND_URL', "http://192.168.8.186:5000")
if not BACKEND_URL:
    raise ValueError("MP3QUEUE_BACKEND_URL environment variable must not be empty")

# Extraction calls can take minutes on the backend
REQUEST_TIMEOUT = _read_float('MP3QUEUE_REQUEST_TIMEOUT', 600.0)

# Delay between handing out a download link and deleting the file
DELETE_DELAY_SECONDS = _read_float('MP3QUEUE_DELETE_DELAY', 10.0)

DEFAULT_FOLDER = os.getenv('MP3QUEUE_DEFAULT_FOLDER', "default") or "default"

LOG_LEVEL = os.getenv('MP3QUEUE_LOG_LEVEL', "INFO").upper()
