import logging
import logging.config
from typing import Optional

from quitcheck.config import TrackerConfig, get_config


def configure_logging(config: Optional[TrackerConfig] = None) -> logging.Logger:
    """Console plus rotating file handler, as set up in the configuration"""
    config = config or get_config()
    if config.log_to_file:
        config.log_dir.mkdir(exist_ok=True, parents=True)
    logging.config.dictConfig(config.get_logging_config())
    return logging.getLogger()
