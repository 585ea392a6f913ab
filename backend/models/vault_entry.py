# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""VaultEntry ORM model."""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func

from database import Base


class VaultEntry(Base):
    __tablename__ = "vault_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Cascade delete: removing a user removes all their entries atomically.
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    site = Column(String(255), nullable=False)
    link = Column(String(2048), nullable=True)
    username = Column(String(255), nullable=False)
    # base64( 12-byte nonce || 16-byte GCM tag || ciphertext ).
    # Never contains plaintext.
    cipher = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
