"""Base SQLAlchemy declarative base for all models"""

from sqlalchemy.orm import declarative_base
from sqlalchemy import BigInteger, Integer


# BIGINT primary keys only autoincrement as INTEGER PRIMARY KEY on SQLite
PortableBigInteger = BigInteger().with_variant(Integer(), "sqlite")


Base = declarative_base()
