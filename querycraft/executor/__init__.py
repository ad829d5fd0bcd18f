"""Statement executors."""
from querycraft.executor.base import Executor
from querycraft.executor.dbapi import DBAPIExecutor
from querycraft.executor.sqlalchemy import SQLAlchemyExecutor

__all__ = ["DBAPIExecutor", "Executor", "SQLAlchemyExecutor"]
