"""Dobles en memoria del cliente Supabase y de los adaptadores de fuentes."""

import re
import uuid
from typing import Any, Iterator, Optional

from immoradar.ingestion.extractor import extract_from_mapping
from immoradar.models import CandidateRecord
from immoradar.sources.base import BaseSourceAdapter


class FakeResponse:
    def __init__(self, data: list[dict]):
        self.data = data


def _ilike_to_regex(pattern: str) -> re.Pattern:
    out = []
    chars = iter(pattern)
    for char in chars:
        if char == "\\":
            out.append(re.escape(next(chars, "")))
        elif char == "%":
            out.append(".*")
        elif char == "_":
            out.append(".")
        else:
            out.append(re.escape(char))
    return re.compile("".join(out), re.IGNORECASE | re.DOTALL)


class FakeQuery:
    """Subconjunto del query builder de postgrest que usan los repositorios."""

    def __init__(self, client: "FakeSupabaseClient", table: str):
        self._client = client
        self._table = table
        self._filters = []
        self._limit: Optional[int] = None
        self._insert: Optional[dict] = None

    def select(self, columns: str = "*") -> "FakeQuery":
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def ilike(self, column: str, pattern: str) -> "FakeQuery":
        regex = _ilike_to_regex(pattern)
        self._filters.append(
            lambda row: row.get(column) is not None and regex.fullmatch(row[column]) is not None
        )
        return self

    def limit(self, count: int) -> "FakeQuery":
        self._limit = count
        return self

    def insert(self, data: dict) -> "FakeQuery":
        self._insert = data
        return self

    def execute(self) -> FakeResponse:
        if self._insert is not None:
            self._client.maybe_fail(self._table)
            row = dict(self._insert)
            row.setdefault("id", str(uuid.uuid4()))
            self._client.rows(self._table).append(row)
            return FakeResponse([dict(row)])

        rows = [
            dict(row)
            for row in self._client.rows(self._table)
            if all(check(row) for check in self._filters)
        ]
        if self._limit is not None:
            rows = rows[:self._limit]
        return FakeResponse(rows)


class FakeSupabaseClient:
    """
    Guarda filas por tabla en memoria.

    `fail_inserts` indica, por tabla, cuántas inserciones deben fallar
    (-1: fallan todas).
    """

    def __init__(self, fail_inserts: Optional[dict[str, int]] = None):
        self.tables: dict[str, list[dict]] = {}
        self.fail_inserts = dict(fail_inserts or {})

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rows(self, name: str) -> list[dict]:
        return self.tables.setdefault(name, [])

    def maybe_fail(self, name: str) -> None:
        remaining = self.fail_inserts.get(name, 0)
        if remaining == 0:
            return
        if remaining > 0:
            self.fail_inserts[name] = remaining - 1
        raise RuntimeError(f"insert into {name} failed")


class StaticAdapter(BaseSourceAdapter):
    """
    Devuelve payloads fijos por descriptor.

    Cada payload es una lista de CandidateRecord o dicts, o una excepción
    que fetch_raw lanza.
    """

    SOURCE_NAME = "static"

    def __init__(self, payloads: dict[str, Any], settings=None, match_district: bool = False):
        super().__init__(settings)
        self.payloads = payloads
        self.MATCH_DISTRICT = match_district
        self.calls: list[str] = []

    async def fetch_raw(self, descriptor: str) -> Any:
        self.calls.append(descriptor)
        payload = self.payloads.get(descriptor, [])
        if isinstance(payload, Exception):
            raise payload
        return payload

    def parse(self, payload: Any, descriptor: str) -> Iterator[CandidateRecord]:
        for item in payload:
            if isinstance(item, CandidateRecord):
                yield item
            else:
                yield extract_from_mapping(item, source_name=self.SOURCE_NAME)


class ExplodingAdapter(BaseSourceAdapter):
    """Adaptador cuyo scrape lanza después de generar los candidatos de `before`."""

    SOURCE_NAME = "exploding"

    def __init__(self, before: Optional[list[CandidateRecord]] = None, settings=None):
        super().__init__(settings)
        self.before = before or []

    async def fetch_raw(self, descriptor: str) -> Any:
        return None

    def parse(self, payload: Any, descriptor: str) -> Iterator[CandidateRecord]:
        return iter(())

    async def scrape(self, descriptor: str):
        for candidate in self.before:
            yield candidate
        raise RuntimeError("provider exploded")
