# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Owner-scoped persistence of vault entries.

Security invariants
-------------------
* ``owner_id`` is a mandatory argument of every method and is part of every
  query filter.  An entry owned by someone else behaves exactly like an
  entry that does not exist.
* The password is encrypted before it reaches the session and is decrypted
  only by :meth:`VaultEntryStore.reveal`.
"""

import math
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from core.errors import NotFound, ValidationError
from core.security import VaultCipher
from database import translate_db_errors
from models.vault_entry import VaultEntry

# Largest value an INTEGER primary key can hold on any supported backend
MAX_ENTRY_ID = 2 ** 63 - 1


def total_pages(total: int, page_size: int) -> int:
    """Number of pages needed for *total* rows; an empty vault still has one page."""
    return max(math.ceil(total / page_size), 1)


class VaultEntryStore:
    def __init__(self, db: Session, cipher: VaultCipher):
        self.db = db
        self.cipher = cipher

    def create(
        self,
        owner_id: int,
        site: Optional[str],
        link: Optional[str],
        username: Optional[str],
        plaintext_password: Optional[str],
    ) -> int:
        """Encrypt the password and persist the entry.  Returns the new entry id."""
        if not site or not username or not plaintext_password:
            raise ValidationError("Site, username and password are required")

        entry = VaultEntry(
            user_id=owner_id,
            site=site,
            link=link or None,
            username=username,
            cipher=self.cipher.encrypt_text(plaintext_password),
        )
        with translate_db_errors(self.db):
            self.db.add(entry)
            self.db.commit()
            self.db.refresh(entry)
        return entry.id

    def list(self, owner_id: int, page: int, page_size: int) -> Tuple[List[VaultEntry], int]:
        """
        One page of the owner's entries, newest first, plus the owner's total
        entry count.  ``page`` below 1 is treated as 1; a page past the end is
        empty.
        """
        page = max(page, 1)
        with translate_db_errors(self.db):
            query = self.db.query(VaultEntry).filter(VaultEntry.user_id == owner_id)
            total = query.count()
            offset = (page - 1) * page_size
            if offset >= total:
                return [], total
            # Ids are assigned in insertion order, so id desc == newest first
            entries = (
                query.order_by(VaultEntry.id.desc())
                .offset(offset)
                .limit(page_size)
                .all()
            )
        return entries, total

    def delete(self, owner_id: int, entry_id: int) -> None:
        """Delete the entry if the owner matches.  Nothing to delete is not an error."""
        if not 1 <= entry_id <= MAX_ENTRY_ID:
            return
        with translate_db_errors(self.db):
            self.db.query(VaultEntry).filter(
                VaultEntry.id == entry_id,
                VaultEntry.user_id == owner_id,
            ).delete(synchronize_session=False)
            self.db.commit()

    def reveal(self, owner_id: int, entry_id: int) -> str:
        """
        Decrypt and return the entry's password.  Raises ``NotFound`` when the
        entry is absent or belongs to another user; ``IntegrityError`` from
        the cipher is passed through unchanged.
        """
        if not 1 <= entry_id <= MAX_ENTRY_ID:
            raise NotFound()
        with translate_db_errors(self.db):
            entry = (
                self.db.query(VaultEntry)
                .filter(VaultEntry.id == entry_id, VaultEntry.user_id == owner_id)
                .first()
            )
        if entry is None:
            raise NotFound()
        return self.cipher.decrypt_text(entry.cipher)
