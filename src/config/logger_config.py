import sys

from loguru import logger

from src.config.settings import load_settings

_settings = load_settings()
log_file = _settings.log_dir / "refindex_{time}.log"

logger.remove()
logger.add(
    log_file,
    rotation="256 MB",  # 每個檔案滿 256MB 就切分
    retention="10 days",  # 只保留最近 10 天的日誌
    compression="zip",  # 切分後的舊檔案自動壓縮成 zip
    encoding="utf-8",
    level=_settings.log_level,
    enqueue=True,
)
logger.add(sys.stderr, level="WARNING")
