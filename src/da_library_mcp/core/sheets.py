"""Keyed record CRUD over a single JSON sheet document.

A sheet is one JSON document in DA holding an ordered list of flat records.
SheetStore is parameterized by the key field and an optional function that
shapes caller items into stored records, so placeholders, templates and
library registrations all share this code.

Every write is a whole-document read-modify-write with no locking or version
check: concurrent writers to the same sheet can lose updates.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any, Literal

from pydantic import BaseModel

from .admin_client import DAAdminClient, is_not_found_error
from .exceptions import AdminRequestError

logger = logging.getLogger(__name__)

Record = dict[str, Any]
RecordShaper = Callable[[Mapping[str, Any]], Record]


class UpsertResult(BaseModel):
    action: Literal["created", "updated"]
    key: str
    total: int
    path: str
    url: str


class RemoveResult(BaseModel):
    removed: bool
    total: int
    path: str


class SetupResult(BaseModel):
    created: int
    updated: int
    total: int
    path: str
    url: str


def create_sheet_json(sheet_type: str, entries: list[Record]) -> dict[str, Any]:
    """Serialize records into the single-sheet document shape."""
    return {
        ":type": "sheet",
        ":sheetname": sheet_type,
        "total": len(entries),
        "offset": 0,
        "limit": len(entries),
        "data": entries,
    }


def records_from_document(document: Any) -> list[Record]:
    """Extract the record list from a sheet or multi-sheet document."""
    if not isinstance(document, dict):
        return []

    data = document.get("data")
    if isinstance(data, list):
        return [dict(r) for r in data if isinstance(r, dict)]

    names = document.get(":names")
    if isinstance(names, list) and names:
        first = document.get(names[0])
        if isinstance(first, dict):
            return records_from_document(first)

    return []


def upsert_record(
    records: list[Record], record: Record, key_field: str
) -> Literal["created", "updated"]:
    """Replace the record sharing ``record[key_field]`` in place, else append."""
    key = record[key_field]
    for index, existing in enumerate(records):
        if existing.get(key_field) == key:
            records[index] = record
            return "updated"
    records.append(record)
    return "created"


def remove_record(records: list[Record], key: Any, key_field: str) -> bool:
    """Delete the first record whose key field equals ``key``."""
    for index, existing in enumerate(records):
        if existing.get(key_field) == key:
            del records[index]
            return True
    return False


class SheetStore:
    """CRUD over one sheet document.

    Usage:
        ```python
        store = SheetStore(client, "org", "repo", "/placeholders", "placeholders",
                           key_field="key", to_record=lambda i: {"key": i["key"], "value": i["text"]})
        await store.add({"key": "site-title", "text": "Welcome"})
        ```
    """

    def __init__(
        self,
        client: DAAdminClient,
        org: str,
        repo: str,
        path: str,
        sheet_type: str,
        key_field: str,
        to_record: RecordShaper | None = None,
    ):
        self.client = client
        self.org = org
        self.repo = repo
        self.path = path
        self.sheet_type = sheet_type
        self.key_field = key_field
        self.to_record: RecordShaper = to_record or dict

    @property
    def source_url(self) -> str:
        return self.client.format_url("source", self.org, self.repo, self.path, "json")

    @property
    def content_url(self) -> str:
        return f"{self.client.content_url(self.org, self.repo, self.path)}.json"

    async def read(self) -> list[Record] | None:
        """Current records, or None if the document does not exist."""
        try:
            document = await self.client.request(self.source_url)
        except AdminRequestError as e:
            if is_not_found_error(e):
                return None
            raise
        return records_from_document(document)

    async def list_records(self) -> list[Record]:
        return await self.read() or []

    async def write(self, records: list[Record]) -> None:
        await self.client.upload_json(self.source_url, create_sheet_json(self.sheet_type, records))
        logger.info(f"Wrote {len(records)} record(s) to {self.sheet_type} sheet {self.path}")

    async def add(self, item: Mapping[str, Any]) -> UpsertResult:
        """Insert or replace one record."""
        records = await self.list_records()
        record = self.to_record(item)
        action = upsert_record(records, record, self.key_field)
        await self.write(records)
        return UpsertResult(
            action=action,
            key=str(record[self.key_field]),
            total=len(records),
            path=self.path,
            url=self.content_url,
        )

    async def remove(self, key: Any) -> RemoveResult:
        """Remove the record with ``key``.

        The document is rewritten only when a record was removed. When the key
        is absent the stored sheet is already in the requested state, so it is
        left untouched and ``removed`` is False.
        """
        records = await self.list_records()
        removed = remove_record(records, key, self.key_field)
        if removed:
            await self.write(records)
        return RemoveResult(removed=removed, total=len(records), path=self.path)

    async def setup(self, items: Iterable[Mapping[str, Any]]) -> SetupResult:
        """Upsert many records with a single document write."""
        records = await self.list_records()
        created = updated = 0
        for item in items:
            if upsert_record(records, self.to_record(item), self.key_field) == "created":
                created += 1
            else:
                updated += 1
        await self.write(records)
        return SetupResult(
            created=created,
            updated=updated,
            total=len(records),
            path=self.path,
            url=self.content_url,
        )


__all__ = [
    "SheetStore",
    "UpsertResult",
    "RemoveResult",
    "SetupResult",
    "create_sheet_json",
    "records_from_document",
    "upsert_record",
    "remove_record",
]
