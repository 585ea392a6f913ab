# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Vault endpoints – list, add, delete and on-demand reveal of entries.

Security invariants enforced by every handler
---------------------------------------------
* A live session is required on every endpoint (via ``get_current_user_id``).
* Every operation goes through ``VaultEntryStore`` with the caller's user id
  as the owner.  Guessing another user's entry id yields 404, exactly as
  for an id that does not exist.
* Plaintext passwords are only returned by the dedicated ``/password``
  endpoint.  Listing responses contain metadata only.
* Plaintext is never persisted, cached, or logged.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from auth.dependencies import get_cipher, get_current_user_id
from core.logger import logger
from core.security import VaultCipher
from database import get_db
from vault.schemas import (
    VaultEntryCreate,
    VaultEntryCreated,
    VaultEntryListResponse,
)
from vault.store import VaultEntryStore, total_pages

router = APIRouter(prefix="/vault", tags=["vault"])


def get_store(
    db: Session = Depends(get_db),
    cipher: VaultCipher = Depends(get_cipher),
) -> VaultEntryStore:
    return VaultEntryStore(db, cipher)


def _parse_page(raw: Optional[str]) -> int:
    """Lenient page parsing: anything that is not a positive integer means page 1."""
    try:
        return max(int(raw), 1)
    except (TypeError, ValueError):
        return 1


# ---------------------------------------------------------------------------
# GET /vault/entries  – list the current user's entries
# ---------------------------------------------------------------------------


@router.get("/entries", response_model=VaultEntryListResponse)
def list_entries(
    request: Request,
    page: Optional[str] = None,
    user_id: int = Depends(get_current_user_id),
    store: VaultEntryStore = Depends(get_store),
):
    """One page of entries, newest first.  Never includes any password material."""
    page_no = _parse_page(page)
    page_size = request.app.state.settings.page_size
    entries, total = store.list(user_id, page_no, page_size)
    return VaultEntryListResponse(
        entries=entries,
        page=page_no,
        total_pages=total_pages(total, page_size),
        total=total,
    )


# ---------------------------------------------------------------------------
# POST /vault/entries  – create a new entry
# ---------------------------------------------------------------------------


@router.post("/entries", response_model=VaultEntryCreated, status_code=status.HTTP_201_CREATED)
def add_entry(
    body: VaultEntryCreate,
    user_id: int = Depends(get_current_user_id),
    store: VaultEntryStore = Depends(get_store),
):
    """
    Encrypt the supplied plaintext password and persist the entry.
    The client never sees the master key or the ciphertext.
    """
    entry_id = store.create(user_id, body.site, body.link, body.username, body.plaintext_password)
    logger.info("Vault entry %d created for user id=%d", entry_id, user_id)
    return VaultEntryCreated(id=entry_id)


# ---------------------------------------------------------------------------
# DELETE /vault/entries/{id}  – remove an entry
# ---------------------------------------------------------------------------


@router.delete("/entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_entry(
    entry_id: int,
    user_id: int = Depends(get_current_user_id),
    store: VaultEntryStore = Depends(get_store),
):
    """Fire-and-forget delete: 204 whether or not a matching entry existed."""
    store.delete(user_id, entry_id)
    logger.info("Vault entry %d delete requested by user id=%d", entry_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# GET /vault/entries/{id}/password  – reveal the plaintext password
# ---------------------------------------------------------------------------


@router.get("/entries/{entry_id}/password", response_class=PlainTextResponse)
def reveal_entry(
    entry_id: int,
    user_id: int = Depends(get_current_user_id),
    store: VaultEntryStore = Depends(get_store),
):
    """
    The *only* endpoint that returns a plaintext password, as raw text.
    It is called on-demand when the user copies or reveals an entry.
    """
    plaintext = store.reveal(user_id, entry_id)
    logger.info("Vault entry %d revealed for user id=%d", entry_id, user_id)
    return PlainTextResponse(plaintext)
