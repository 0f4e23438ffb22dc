"""Default values for flowprep."""

DEFAULT_HIGH_WATER_MARK = 16
DEFAULT_CHUNK_SIZE = 64 * 1024
DEFAULT_ECHO_REPLY = "Got your message!"
DEFAULT_LOG_FORMAT = "%(asctime)-15s %(process)-6s %(name)-10s %(levelname)-8s: %(message)s"
DEFAULT_LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# dictconfig as described in
# https://docs.python.org/3/library/logging.config.html#configuration-dictionary-schema
DEFAULT_LOG_CONFIG: dict = {
    "version": 1,
    "formatters": {
        "flowprep": {
            "class": "flowprep.util.logging.FlowprepFormatter",
            "format": DEFAULT_LOG_FORMAT,
            "datefmt": DEFAULT_LOG_DATE_FORMAT,
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "flowprep",
            "stream": "ext://sys.stdout",
        },
    },
    "loggers": {
        "root": {"level": "INFO", "handlers": ["console"]},
        "Scheduler": {"level": "INFO"},
        "Stream": {"level": "INFO"},
    },
    "filters": {},
    "disable_existing_loggers": False,
}
