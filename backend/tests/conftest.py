"""
Shared fixtures for AI Content tests.

FakeDatabase implements the small part of the motor API the services use.
Every operation yields to the event loop once and then runs without
awaiting, so each call is atomic the way a single MongoDB request is.
"""

import asyncio
import copy
import itertools
import os
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Optional

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

os.environ.setdefault("MONGO_URL", "mongodb://localhost:27017")
os.environ.setdefault("DB_NAME", "content_studio_test")

from ai_content.generator import ContentGenerator, build_full_prompt, estimate_generation_cost
from ai_content.models import GeneratedContent

_object_ids = itertools.count(1)


def _matches(doc: dict, filt: Optional[dict]) -> bool:
    for key, cond in (filt or {}).items():
        value = doc.get(key)
        if isinstance(cond, dict) and any(k.startswith("$") for k in cond):
            for op, operand in cond.items():
                if op == "$gte" and not (value is not None and value >= operand):
                    return False
                if op == "$gt" and not (value is not None and value > operand):
                    return False
                if op == "$lte" and not (value is not None and value <= operand):
                    return False
                if op == "$lt" and not (value is not None and value < operand):
                    return False
                if op == "$ne" and value == operand:
                    return False
        elif value != cond:
            return False
    return True


def _project(doc: dict, projection: Optional[dict]) -> dict:
    if not projection:
        return copy.deepcopy(doc)
    included = [k for k, v in projection.items() if v and k != "_id"]
    if included:
        out = {k: doc[k] for k in included if k in doc}
        if projection.get("_id", 1) and "_id" in doc:
            out["_id"] = doc["_id"]
    else:
        excluded = {k for k, v in projection.items() if not v}
        out = {k: v for k, v in doc.items() if k not in excluded}
    return copy.deepcopy(out)


def _apply_update(doc: dict, update: dict, inserting: bool = False):
    for key, amount in update.get("$inc", {}).items():
        doc[key] = doc.get(key, 0) + amount
    doc.update(copy.deepcopy(update.get("$set", {})))
    if inserting:
        doc.update(copy.deepcopy(update.get("$setOnInsert", {})))


class FakeCursor:
    """Sorts on full documents; the projection is applied last, as in MongoDB."""

    def __init__(self, docs, projection=None):
        self._docs = list(docs)
        self._projection = projection
        self._skip = 0
        self._limit = None

    def sort(self, key, direction=None):
        keys = [(key, direction or 1)] if isinstance(key, str) else list(key)
        for field, order in reversed(keys):
            self._docs.sort(key=lambda d: d.get(field), reverse=order == -1)
        return self

    def skip(self, n):
        self._skip = n
        return self

    def limit(self, n):
        self._limit = n
        return self

    async def to_list(self, length=None):
        await asyncio.sleep(0)
        docs = self._docs[self._skip:]
        if self._limit:
            docs = docs[:self._limit]
        if length is not None:
            docs = docs[:length]
        return [_project(d, self._projection) for d in docs]


class FakeCollection:
    def __init__(self, name: str):
        self.name = name
        self.docs = []
        self.indexes = {}

    async def find_one(self, filt=None, projection=None):
        await asyncio.sleep(0)
        for doc in self.docs:
            if _matches(doc, filt):
                return _project(doc, projection)
        return None

    async def find_one_and_update(self, filt, update, projection=None, return_document=False, upsert=False):
        await asyncio.sleep(0)
        for doc in self.docs:
            if _matches(doc, filt):
                before = _project(doc, projection)
                _apply_update(doc, update)
                return _project(doc, projection) if return_document else before
        return None

    async def update_one(self, filt, update, upsert=False):
        await asyncio.sleep(0)
        for doc in self.docs:
            if _matches(doc, filt):
                _apply_update(doc, update)
                return SimpleNamespace(matched_count=1, modified_count=1, upserted_id=None)
        if upsert:
            doc = {k: v for k, v in filt.items() if not isinstance(v, dict)}
            doc.setdefault("_id", next(_object_ids))
            _apply_update(doc, update, inserting=True)
            self.docs.append(doc)
            return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=doc["_id"])
        return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)

    async def insert_one(self, doc):
        await asyncio.sleep(0)
        doc.setdefault("_id", next(_object_ids))
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    def find(self, filt=None, projection=None):
        return FakeCursor((d for d in self.docs if _matches(d, filt)), projection)

    async def count_documents(self, filt):
        await asyncio.sleep(0)
        return sum(1 for d in self.docs if _matches(d, filt))

    def aggregate(self, pipeline):
        docs = [copy.deepcopy(d) for d in self.docs]
        for stage in pipeline:
            if "$match" in stage:
                docs = [d for d in docs if _matches(d, stage["$match"])]
            elif "$group" in stage:
                spec = stage["$group"]
                key_expr = spec["_id"]
                groups = {}
                for d in docs:
                    key = d.get(key_expr[1:]) if isinstance(key_expr, str) else key_expr
                    group = groups.setdefault(key, {"_id": key})
                    for field, acc in spec.items():
                        if field == "_id":
                            continue
                        operand = acc["$sum"]
                        value = d.get(operand[1:], 0) if isinstance(operand, str) else operand
                        group[field] = group.get(field, 0) + value
                docs = list(groups.values())
        return FakeCursor(docs)

    async def delete_one(self, filt):
        await asyncio.sleep(0)
        for i, doc in enumerate(self.docs):
            if _matches(doc, filt):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def create_index(self, keys, **options):
        await asyncio.sleep(0)
        name = options.get("name") or "_".join(f"{k}_{d}" for k, d in keys)
        self.indexes[name] = {"key": keys, **options}
        return name

    async def index_information(self):
        await asyncio.sleep(0)
        return dict(self.indexes)


class FakeDatabase:
    def __init__(self):
        self._collections = {}

    def __getitem__(self, name):
        return self._collections.setdefault(name, FakeCollection(name))

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]

    async def list_collection_names(self):
        return list(self._collections)

    async def create_collection(self, name):
        return self[name]


class FakeGenerator(ContentGenerator):
    """
    Content generator that never leaves the process.

    Cost follows the real heuristic unless `tokens_used` is fixed.
    """

    def __init__(self, text="Fresh coffee, brewed with love.", tokens_used=None, error=None):
        self.text = text
        self.tokens_used = tokens_used
        self.error = error
        self.calls = []

    async def generate(self, content_type, prompt, model=None):
        self.calls.append((content_type, prompt, model))
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        tokens = self.tokens_used
        if tokens is None:
            tokens = estimate_generation_cost(build_full_prompt(content_type, prompt), self.text)
        return GeneratedContent(text=self.text, tokens_used=tokens, model=model or "gemini-2.5-flash")


@pytest.fixture
def db():
    return FakeDatabase()


@pytest.fixture
def add_user(db):
    """Insert a user document with a token balance."""
    def _add(user_id="user-a", tokens_remaining=50, **fields):
        doc = {
            "_id": next(_object_ids),
            "id": user_id,
            "email": f"{user_id}@example.com",
            "tokens_remaining": tokens_remaining,
            **fields
        }
        db.users.docs.append(doc)
        return doc
    return _add


@pytest.fixture
def add_generation(db):
    """Insert a generation record directly, bypassing billing."""
    counter = itertools.count(1)

    def _add(user_id="user-a", content_type="blog-post", tokens_used=10, created_at=None, **fields):
        n = next(counter)
        doc = {
            "_id": next(_object_ids),
            "id": fields.pop("id", f"gen-{n}"),
            "user_id": user_id,
            "content_type": content_type,
            "prompt": fields.pop("prompt", f"prompt {n}"),
            "output": fields.pop("output", f"output {n}"),
            "tokens_used": tokens_used,
            "model": fields.pop("model", "gemini-2.5-flash"),
            "created_at": created_at or f"2026-01-01T00:00:{n:02d}+00:00",
        }
        db.generations.docs.append(doc)
        return doc
    return _add


@pytest.fixture
def balance_of(db):
    """Stored balance for a user, read straight from the fake collection."""
    def _balance(user_id="user-a"):
        return next(d for d in db.users.docs if d["id"] == user_id)["tokens_remaining"]
    return _balance


@pytest.fixture
def generator():
    """Generator charging a fixed 12 tokens per call; tweak attributes per test."""
    return FakeGenerator(tokens_used=12)
