import os

# load envs
from dotenv import load_dotenv
load_dotenv()


PORT = int(os.getenv("PORT", 5000))
HOST = os.getenv("HOST", None)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

MEGABYTE = (2 ** 10) ** 2
MAX_UPLOAD_MB = int(os.getenv("MAX_UPLOAD_MB", 50))

# Detector tuning
CAPTURE_TARGET_WIDTH = int(os.getenv("CAPTURE_TARGET_WIDTH", 480))
CAPTURE_MIN_AREA_RATIO = float(os.getenv("CAPTURE_MIN_AREA_RATIO", 0.05))
