# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the vault endpoints."""

from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel


# -- Requests --------------------------------------------------------------
# The client sends the *plaintext* password; the server encrypts it before
# persisting.  The cipher column is populated server-side and never accepted
# from the client.


class VaultEntryCreate(BaseModel):
    site: Optional[str] = None
    link: Optional[str] = None
    username: Optional[str] = None
    plaintext_password: Optional[str] = None


# -- Responses -------------------------------------------------------------
# Listing responses carry metadata only – neither plaintext nor ciphertext.
# Use GET /vault/entries/{id}/password to retrieve the plaintext on demand.


class VaultEntryCreated(BaseModel):
    id: int


class VaultEntryResponse(BaseModel):
    id: int
    site: str
    link: Optional[str]
    username: str
    created_at: datetime

    model_config = {"from_attributes": True}


class VaultEntryListResponse(BaseModel):
    entries: List[VaultEntryResponse]
    page: int
    total_pages: int
    total: int
