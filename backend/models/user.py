# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""User ORM model."""

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.dialects import mysql
from sqlalchemy.sql import func

from database import Base

EMAIL_TYPE = String(255).with_variant(mysql.VARCHAR(255, collation="utf8mb4_bin"), "mysql")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Exact match on lookup – stored as typed, no case folding.  MySQL's
    # default collations fold case, so the column is pinned to a binary one.
    email = Column(EMAIL_TYPE, unique=True, nullable=False, index=True)
    # passlib hash string; algorithm, rounds and salt are embedded in it
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
