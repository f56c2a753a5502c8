import os

# Retrieve enviroment variables from .env file

DATABASE_USER = os.environ.get("DATABASE_USER")
DATABASE_PASS = os.environ.get("DATABASE_PASS")
DATABASE_HOST = os.environ.get("DATABASE_HOST")
DATABASE_NAME = os.environ.get("DATABASE_NAME")

# A full SQLAlchemy URL takes precedence over the split credentials
DATABASE_URL = os.environ.get("DATABASE_URL")

SUI_NETWORK = os.environ.get("SUI_NETWORK", "testnet")
SUI_RPC_URL = os.environ.get("SUI_RPC_URL")
SUI_REQUEST_TIMEOUT = int(os.environ.get("SUI_REQUEST_TIMEOUT", 30))

# Package ID from the deployed contract
PACKAGE_ID = os.environ.get("PACKAGE_ID")
MODULE_NAME = os.environ.get("MODULE_NAME", "vote")

POLLING_INTERVAL_MS = int(os.environ.get("POLLING_INTERVAL_MS", 5000))
QUERY_PAGE_SIZE = int(os.environ.get("QUERY_PAGE_SIZE", 50))
INDEXER_ENABLED = bool(int(os.environ.get("INDEXER_ENABLED", True)))

PORT = int(os.environ.get("PORT", 3001))
TIMEZONE = os.environ.get("TIMEZONE", "UTC")

ORIGINS: list = [
    "*"
]


class ConfigError(Exception):
    """
    Raised at startup when a required setting is missing.
    """


def get_database_url():
    if DATABASE_URL:
        return DATABASE_URL

    if not all([DATABASE_USER, DATABASE_HOST, DATABASE_NAME]):
        return None

    return "mysql+asyncmy://{0}:{1}@{2}/{3}".format(
        DATABASE_USER, DATABASE_PASS or "", DATABASE_HOST, DATABASE_NAME
    )


def check_config():
    """
    Validates the static configuration, naming every missing value at once.
    """
    missing = []
    if get_database_url() is None:
        missing.append("DATABASE_URL")
    if not PACKAGE_ID:
        missing.append("PACKAGE_ID")
    if POLLING_INTERVAL_MS < 0:
        missing.append("POLLING_INTERVAL_MS")
    if QUERY_PAGE_SIZE <= 0:
        missing.append("QUERY_PAGE_SIZE")

    if missing:
        raise ConfigError(
            "Missing or invalid required environment variable(s): {}".format(", ".join(missing))
        )
