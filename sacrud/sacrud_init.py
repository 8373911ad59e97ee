import logging
import os
import sys
from concurrent.futures import ThreadPoolExecutor
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
import flask.app
from typing import Optional


class SACRUD:
    """This class configures the Flask application to serve resource actions
    :param app: a Flask application.
    :param LOGLEVEL: loglevel configuration variable, values from logging module (0: trace, .. 50: critical)
    """

    # Configuration settings are stored as class variables
    DEFAULT_PAGE_LIMIT = 250
    MAX_PAGE_LIMIT = 1000
    LOGLEVEL = logging.WARNING
    APP_URL = "http://localhost:5000/"
    APP_NAME = "sacrud"
    MAIL_SERVER = None
    MAIL_PORT = 25
    MAIL_SENDER = "noreply@localhost"
    MAIL_USE_TLS = False
    MAIL_USERNAME = None
    MAIL_PASSWORD = None
    MAIL_TIMEOUT = 10  # seconds, smtp connections fail fast
    RESET_TOKEN_TTL = 24 * 3600  # seconds
    SIDE_EFFECT_WORKERS = 4

    _executor = None

    def __init__(self, app: flask.app.Flask, *args, **kwargs) -> None:
        """
        Constructor
        """
        self.app = app
        if app is not None:
            self.init_app(app, *args, **kwargs)

    def init_app(self, app: flask.app.Flask, app_db: Optional[SQLAlchemy] = None, **kwargs) -> None:
        """
        Application initialization: bind the database and copy the app configuration
        """
        if not isinstance(app, Flask):  # pragma: no cover
            raise TypeError("'app' should be Flask.")

        registered = app.extensions.get("sqlalchemy")
        if app_db is None:
            app_db = registered if registered is not None else DB
        if app_db is not DB:
            # the resource models are declared on sacrud.DB
            raise TypeError("The app should use sacrud.DB as its SQLAlchemy instance")
        if registered is None:
            DB.init_app(app)

        self.db = app_db

        if app.config.get("DEBUG", False):
            log.setLevel(logging.DEBUG)

        for conf_name, conf_val in kwargs.items():
            setattr(SACRUD, conf_name, conf_val)

        for conf_name, conf_val in app.config.items():
            setattr(SACRUD, conf_name, conf_val)

        # pylint: disable=unused-argument,unused-variable
        @app.teardown_appcontext
        def shutdown_session(exception=None):
            """cfr. http://flask.pocoo.org/docs/0.12/patterns/sqlalchemy/"""
            self.db.session.remove()

    @classmethod
    def executor(cls) -> ThreadPoolExecutor:
        """
        :return: the shared executor that runs best-effort side effects
        """
        if cls._executor is None:
            cls._executor = ThreadPoolExecutor(max_workers=cls.SIDE_EFFECT_WORKERS, thread_name_prefix="sacrud-side-effect")
        return cls._executor

    @staticmethod
    def init_logging(loglevel: int = logging.WARNING) -> logging.Logger:
        """
        Specify the log format used in the webserver logs
        The webserver will catch stdout so we redirect eveything to sys.stderr
        """
        log = logging.getLogger(__name__)
        if log.level == logging.NOTSET:
            handler = logging.StreamHandler(sys.stderr)
            formatter = logging.Formatter("[%(asctime)s] %(levelname)s: %(message)s")
            handler.setFormatter(formatter)
            log.setLevel(loglevel)
            log.addHandler(handler)
        return log


#
# DB and logging initialization
#
DB = SQLAlchemy()

try:
    DEBUG = os.getenv("DEBUG", logging.WARNING)
    LOGLEVEL = int(DEBUG)
except ValueError:  # pragma: no cover
    print(f'Invalid LogLevel in DEBUG Environment Variable! "{DEBUG}"')
    LOGLEVEL = logging.INFO

log = SACRUD.init_logging(LOGLEVEL)
