"""MongoDB configuration and connection for the todo CLI.

Set these in your environment or in a .env file:
  MONGODB_CONNECTION_STRING  e.g. mongodb://localhost:27017
  MONGODB_DATABASE           e.g. tododb
  MONGODB_COLLECTION         e.g. todos
"""
import logging
import os
from contextlib import contextmanager

from dotenv import load_dotenv
from pymongo import MongoClient, timeout
from pymongo.errors import PyMongoError

from models import ConfigError, StoreConnectionError

logger = logging.getLogger(__name__)

CONNECTION_STRING_VAR = "MONGODB_CONNECTION_STRING"
DATABASE_VAR = "MONGODB_DATABASE"
COLLECTION_VAR = "MONGODB_COLLECTION"

CONNECT_TIMEOUT_MS = 10 * 1000


class Config:
    """Connection settings, read once at startup and passed to every operation."""

    __slots__ = ("connection_string", "database", "collection")

    def __init__(self, connection_string, database, collection):
        self.connection_string = connection_string
        self.database = database
        self.collection = collection

    def __repr__(self):
        # the connection string may carry credentials
        return f"<Config {self.database}.{self.collection}>"


def load_config(environ=None):
    """Build a Config from the environment; raise ConfigError on the first missing variable."""
    if environ is None:
        load_dotenv()
        environ = os.environ
    values = []
    for name in (CONNECTION_STRING_VAR, DATABASE_VAR, COLLECTION_VAR):
        value = environ.get(name, "")
        if not value:
            raise ConfigError(f"missing environment variable: {name}")
        values.append(value)
    return Config(*values)


@contextmanager
def connect(config):
    """Open a client, ping it and yield the todo collection. The client is closed on exit.

    Connecting and the ping share a 10 second bound; calls on the yielded
    collection have no timeout.
    """
    client = None
    try:
        client = MongoClient(
            config.connection_string,
            serverSelectionTimeoutMS=CONNECT_TIMEOUT_MS,
            connectTimeoutMS=CONNECT_TIMEOUT_MS,
            directConnection=True,
        )
        # socketTimeoutMS is unset, so the ping reply needs its own deadline
        with timeout(CONNECT_TIMEOUT_MS / 1000):
            client.admin.command("ping")
    except PyMongoError as e:
        if client is not None:
            client.close()
        raise StoreConnectionError(f"unable to connect: {e}") from e
    logger.debug("connected to %r", config)
    try:
        yield client[config.database][config.collection]
    finally:
        client.close()
        logger.debug("closed connection to %r", config)
