from votechain.database.handler import AsyncHandler, Base, Database

__all__ = ["AsyncHandler", "Base", "Database"]
