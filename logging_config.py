import logging
from logging.config import dictConfig


def configure_logging(level=logging.INFO):
    dictConfig(
        {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'standard': {'format': '%(asctime)s %(levelname)s %(name)s: %(message)s'}
            },
            'handlers': {
                'console': {
                    'class': 'logging.StreamHandler',
                    'formatter': 'standard',
                    'level': level,
                }
            },
            'loggers': {
                '': {'handlers': ['console'], 'level': level},
                'werkzeug': {'handlers': ['console'], 'level': level, 'propagate': False},
            },
        }
    )
