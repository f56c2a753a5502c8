import logging
import json
import os

from sqlalchemy.ext.asyncio import AsyncSession

from votechain.indexer import crud
from votechain.indexer.enums import IndexerEventEnum
from votechain.elections.utils import to_json

import sys
from pathlib import Path
from loguru import logger


class InterceptHandler(logging.Handler):
    loglevel_mapping = {
        50: 'CRITICAL',
        40: 'ERROR',
        30: 'WARNING',
        20: 'INFO',
        10: 'DEBUG',
        0: 'NOTSET',
    }

    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = self.loglevel_mapping[record.levelno]

        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        log = logger.bind(request_id='app')
        log.opt(
            depth=depth,
            exception=record.exc_info
        ).log(level, record.getMessage())


class CustomizeLogger:

    @classmethod
    def make_logger(cls, config_path: Path):

        config = cls.load_logging_config(config_path)
        logging_config = config.get('logger')

        logger = cls.customize_logging(
            os.environ.get("LOG_PATH", logging_config.get('path')),
            level=os.environ.get("LOG_LEVEL", logging_config.get('level')),
            retention=logging_config.get('retention'),
            rotation=logging_config.get('rotation'),
            format=logging_config.get('format')
        )
        return logger

    @classmethod
    def customize_logging(cls,
            filepath: Path,
            level: str,
            rotation: str,
            retention: str,
            format: str
    ):

        logger.remove()
        logger.level("INDEXER", no=25, color="<magenta>", icon="")
        logger.add(
            sys.stdout,
            enqueue=True,
            backtrace=True,
            level=level.upper(),
            format=format
        )
        if filepath:
            logger.add(
                str(filepath),
                rotation=rotation,
                retention=retention,
                enqueue=True,
                backtrace=True,
                level=level.upper(),
                format=format
            )
        logging.basicConfig(handlers=[InterceptHandler()], level=0)
        logging.getLogger("uvicorn.access").handlers = [InterceptHandler()]
        for _log in ['uvicorn',
                     'uvicorn.error',
                     'fastapi',
                     'sqlalchemy'
                     ]:
            _logger = logging.getLogger(_log)
            _logger.handlers = [InterceptHandler()]

        return logger.bind(request_id=None, method=None)

    @classmethod
    def load_logging_config(cls, config_path):
        config = None
        with open(config_path) as config_file:
            config = json.load(config_file)
        return config


class IndexerLogger(object):
    """
    Customized logger for events the indexer had to skip.

    Writes to the process log and keeps a row in votechain_indexer_log
    so skipped events can be audited (and replayed by hand).
    """

    _level_to_name = {
        logging.CRITICAL: 'CRITICAL',
        logging.ERROR: 'ERROR',
        logging.WARNING: 'WARNING',
        logging.INFO: 'INFO',
        logging.DEBUG: 'DEBUG',
        logging.NOTSET: 'NOTSET',
    }

    async def _log_to_db(self, session: AsyncSession, level, tracker: str, event: IndexerEventEnum, sui_event=None, **kwargs):
        level_name = self._level_to_name[level]
        tx_digest = sui_event.id.tx_digest if sui_event is not None else None
        event_seq = sui_event.id.event_seq if sui_event is not None else None
        if sui_event is not None:
            kwargs.setdefault("parsed_json", sui_event.parsed_json)

        logger.log(level_name, "[{}] {} at {}:{} {}", tracker, event.value, tx_digest, event_seq, kwargs)
        await crud.log_to_db(
            session=session,
            tracker=tracker,
            log_level=level_name,
            event=event.value,
            event_params=to_json(kwargs),
            tx_digest=tx_digest,
            event_seq=event_seq,
        )

    async def error(self, session: AsyncSession, tracker: str, event: IndexerEventEnum, sui_event=None, **kwargs):
        await self._log_to_db(session, logging.ERROR, tracker, event, sui_event, **kwargs)

    async def warning(self, session: AsyncSession, tracker: str, event: IndexerEventEnum, sui_event=None, **kwargs):
        await self._log_to_db(session, logging.WARNING, tracker, event, sui_event, **kwargs)


indexer_logger = IndexerLogger()

logger_config_path = Path(__file__).with_name("logger_config.json")
logger = CustomizeLogger.make_logger(logger_config_path)
