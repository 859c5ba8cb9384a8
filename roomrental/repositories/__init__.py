from roomrental.repositories.sql import SqlAlchemyUnitOfWork
from roomrental.repositories.memory import InMemoryStore, InMemoryUnitOfWork

__all__ = ["SqlAlchemyUnitOfWork", "InMemoryStore", "InMemoryUnitOfWork"]
