"""Catalog gateway contract with static and SQLite-backed implementations."""

from __future__ import annotations

import asyncio
import logging
import math
import re
import sqlite3
import unicodedata
from abc import ABC, abstractmethod
from collections import Counter
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterable, Sequence

import faiss  # type: ignore
import numpy as np

from rentbot.quoting.models import CatalogEntry

logger = logging.getLogger("rentbot.catalog")

MIN_SIMILARITY = 0.35


class CatalogGateway(ABC):
    """Read-only access to the rentable machines."""

    @abstractmethod
    async def list_all(self) -> list[CatalogEntry]:
        """Return a fresh snapshot of the catalog."""

    @abstractmethod
    async def find_by_name(self, query: str) -> CatalogEntry | None:
        """Return the best match for ``query`` or ``None``."""


def _tokenize(text: str) -> list[str]:
    folded = unicodedata.normalize("NFKD", text.lower())
    folded = "".join(char for char in folded if not unicodedata.combining(char))
    return re.findall(r"[a-z0-9]+", folded)


def _similarity_match(query_tokens: list[str], entries: Sequence[CatalogEntry]) -> CatalogEntry | None:
    # Model names are counted twice so they outweigh description words.
    candidates = [
        (entry, tokens)
        for entry in entries
        if (tokens := _tokenize(f"{entry.model_name} {entry.model_name} {entry.description}"))
    ]
    if not candidates:
        return None
    documents = [tokens for _, tokens in candidates]
    vocabulary = sorted({token for doc in documents for token in doc})
    if not vocabulary:
        return None
    vocab_index = {token: idx for idx, token in enumerate(vocabulary)}

    doc_freq = Counter(token for doc in documents for token in set(doc))
    idf = np.array(
        [math.log((1 + len(documents)) / (1 + doc_freq[token])) + 1.0 for token in vocabulary],
        dtype=np.float32,
    )

    def vectorize(tokens: list[str]) -> np.ndarray:
        vector = np.zeros((1, len(vocabulary)), dtype=np.float32)
        counts = Counter(tokens)
        for token, count in counts.items():
            idx = vocab_index.get(token)
            if idx is not None:
                vector[0, idx] = (count / len(tokens)) * idf[idx]
        return vector

    query_vector = vectorize(query_tokens)
    if not query_vector.any():
        return None

    matrix = np.vstack([vectorize(doc) for doc in documents])
    faiss.normalize_L2(matrix)
    faiss.normalize_L2(query_vector)
    index = faiss.IndexFlatIP(len(vocabulary))
    index.add(matrix)
    scores, indices = index.search(query_vector, 1)

    best, score = int(indices[0][0]), float(scores[0][0])
    if best < 0 or score < MIN_SIMILARITY:
        return None
    entry = candidates[best][0]
    logger.debug("Similarity match %r score=%.3f", entry.model_name, score)
    return entry


def match_entry(query: str, entries: Sequence[CatalogEntry]) -> CatalogEntry | None:
    """Resolve a machine name against catalog entries.

    Tries a case-insensitive exact match, then entries whose name contains
    every query token, then TF-IDF similarity over name and description.
    """

    if not query or not query.strip() or not entries:
        return None

    query_tokens = _tokenize(query)
    if not query_tokens:
        return None

    for entry in entries:
        if _tokenize(entry.model_name) == query_tokens:
            return entry

    subset_matches = [entry for entry in entries if set(query_tokens) <= set(_tokenize(entry.model_name))]
    if subset_matches:
        # Prefer the name with the fewest extra tokens.
        return min(subset_matches, key=lambda entry: len(_tokenize(entry.model_name)))

    return _similarity_match(query_tokens, entries)


class StaticCatalogGateway(CatalogGateway):
    """Catalog held in memory, used for fixtures and local runs."""

    def __init__(self, entries: Iterable[CatalogEntry]) -> None:
        self._entries = list(entries)

    async def list_all(self) -> list[CatalogEntry]:
        return list(self._entries)

    async def find_by_name(self, query: str) -> CatalogEntry | None:
        return match_entry(query, self._entries)


class SQLiteCatalogGateway(CatalogGateway):
    """Catalog stored in a ``machines`` SQLite table."""

    def __init__(self, database_path: Path) -> None:
        self.database_path = Path(database_path)

    def _load(self) -> list[CatalogEntry]:
        if not self.database_path.exists():
            logger.warning("Catalog database %s not found", self.database_path)
            return []

        conn = sqlite3.connect(self.database_path)
        conn.row_factory = sqlite3.Row
        try:
            rows = conn.execute(
                "SELECT model_name, description, weekly_price FROM machines ORDER BY model_name ASC"
            ).fetchall()
        finally:
            conn.close()

        entries: list[CatalogEntry] = []
        for row in rows:
            try:
                price = Decimal(str(row["weekly_price"]))
            except InvalidOperation:
                logger.warning("Skipping %r: unreadable weekly_price %r", row["model_name"], row["weekly_price"])
                continue
            entries.append(
                CatalogEntry(
                    model_name=row["model_name"],
                    description=row["description"] or "",
                    weekly_price=price,
                )
            )
        return entries

    async def list_all(self) -> list[CatalogEntry]:
        return await asyncio.to_thread(self._load)

    async def find_by_name(self, query: str) -> CatalogEntry | None:
        entries = await self.list_all()
        match = match_entry(query, entries)
        if match is None:
            logger.info("No catalog machine matches %r", query)
        return match


def ensure_schema(database_path: Path) -> None:
    database_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(database_path)
    try:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS machines (
                model_name TEXT PRIMARY KEY,
                description TEXT,
                weekly_price TEXT NOT NULL
            );
            """
        )
        conn.commit()
    finally:
        conn.close()


def upsert_machines(database_path: Path, entries: Iterable[CatalogEntry]) -> int:
    ensure_schema(database_path)
    conn = sqlite3.connect(database_path)
    written = 0
    try:
        for entry in entries:
            conn.execute(
                """
                INSERT INTO machines (model_name, description, weekly_price)
                VALUES (:model_name, :description, :weekly_price)
                ON CONFLICT(model_name) DO UPDATE SET
                    description=excluded.description,
                    weekly_price=excluded.weekly_price
                """,
                {
                    "model_name": entry.model_name,
                    "description": entry.description,
                    "weekly_price": str(entry.weekly_price),
                },
            )
            written += 1
        conn.commit()
    finally:
        conn.close()
    return written
