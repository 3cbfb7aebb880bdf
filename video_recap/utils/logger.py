import os
import sys
import logging

from video_recap.config import config

logging_str = "[%(asctime)s] {%(pathname)s:%(lineno)d} %(levelname)s - %(message)s"
logging_dir = os.getenv("LOG_DIR", os.path.join(config.BASE_DIR, "logs"))
logging_path = os.path.join(logging_dir, "videorecap.log")
os.makedirs(logging_dir, exist_ok=True)
logging.basicConfig(
    level=config.LOG_LEVEL,
    format=logging_str,
    handlers=[
        logging.FileHandler(logging_path),
        logging.StreamHandler(sys.stdout)
    ]
)

# The Groq SDK logs every request through httpx at INFO
for noisy in ("httpx", "httpcore", "groq"):
    logging.getLogger(noisy).setLevel(logging.WARNING)

logging = logging.getLogger('videorecap')
