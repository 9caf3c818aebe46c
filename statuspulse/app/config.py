import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

STATE_FILE_NAME = "status_state.json"

@dataclass(frozen=True)
class Settings:
    UA: str = os.getenv("SP_UA", "StatusPulse/1.0 (+uptime dashboard)")
    CONFIG_PATH: str = os.getenv("SP_CONFIG_PATH", "./config.json")
    STATIC_PATH: str = os.getenv("SP_STATIC_PATH", "./static")
    DATA_PATH: str = os.getenv("SP_DATA_PATH", "./data")
    HOST: str = os.getenv("SP_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("SP_PORT", "8081"))
    INTERVAL_S: float = float(os.getenv("SP_INTERVAL_S", "10"))
    CONNECT_TIMEOUT_S: float = float(os.getenv("SP_CONNECT_TIMEOUT_S", "5"))
    READ_TIMEOUT_S: float = float(os.getenv("SP_READ_TIMEOUT_S", "8"))
    TOTAL_TIMEOUT_S: float = float(os.getenv("SP_TOTAL_TIMEOUT_S", "10"))
    MAX_CONCURRENCY: int = int(os.getenv("SP_MAX_CONCURRENCY", "0"))
    SEND_TIMEOUT_S: float = float(os.getenv("SP_SEND_TIMEOUT_S", "5"))

    @property
    def state_file(self) -> Path:
        return Path(self.DATA_PATH) / STATE_FILE_NAME

settings = Settings()
