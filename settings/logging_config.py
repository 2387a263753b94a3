from __future__ import annotations

import logging
from logging.config import dictConfig

from settings.config import settings


def configure_logging(level: int | str | None = None) -> None:
	level = level or settings.LOG_LEVEL
	if isinstance(level, int):
		level = logging.getLevelName(level)
	dictConfig(
		{
			"version": 1,
			"disable_existing_loggers": False,
			"formatters": {
				"standard": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"}
			},
			"handlers": {
				"console": {
					"class": "logging.StreamHandler",
					"formatter": "standard",
					"level": level,
				}
			},
			"loggers": {
				"": {"handlers": ["console"], "level": level},
				"uvicorn": {"handlers": ["console"], "level": level, "propagate": False},
				"sqlalchemy.engine": {"handlers": ["console"], "level": "WARNING", "propagate": False},
			},
		}
	)
