import logging
import os
from logging.handlers import RotatingFileHandler
from config.config import Config

ROOT_LOGGER = 'jcep'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logger(name=ROOT_LOGGER, log_file=None):
    """
    Attach a rotating file handler and a console handler to the
    application logger. Module loggers from `get_logger` propagate here.
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO))
    
    # Test runners and the reloader import this module more than once
    if logger.handlers:
        return logger
    
    log_file = log_file or Config.LOG_FILE
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    
    file_handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=10)
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)
    
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
    
    return logger


def get_logger(name=None):
    """Logger for a module, e.g. `jcep.app.services.review_form_service`"""
    if not name or name == ROOT_LOGGER:
        return logging.getLogger(ROOT_LOGGER)
    return logging.getLogger(f'{ROOT_LOGGER}.{name}')


logger = setup_logger()
