"""Common utilities for tests."""

import unittest
import unittest.mock
from typing import Any, Iterator, Optional
from unittest.mock import MagicMock, patch

from mockfirestore import CollectionReference, MockFirestore, Query
from mockfirestore.document import DocumentReference

from volunteerhub import create_app

FIRESTORE_BATCH_LIMIT = 500


class MockArrayUnion:
    def __init__(self, values: list[Any]) -> None:
        self.values = values

    def __iter__(self) -> Iterator[Any]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)


class MockArrayRemove:
    def __init__(self, values: list[Any]) -> None:
        self.values = values

    def __iter__(self) -> Iterator[Any]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)


class MockFieldFilter:
    def __init__(self, field_path: str, op_string: str, value: Any) -> None:
        self.field_path = field_path
        self.op_string = op_string
        self.value = value


def patch_mockfirestore() -> None:
    """Apply monkeypatches to mockfirestore to support FieldFilter and transforms."""

    def collection_where(
        self: Any,
        field_path: Optional[str] = None,
        op_string: Optional[str] = None,
        value: Any = None,
        filter: Any = None,
    ) -> Any:
        if filter:
            return self._where(filter.field_path, filter.op_string, filter.value)
        return self._where(field_path, op_string, value)

    if not hasattr(CollectionReference, "_where"):
        CollectionReference._where = CollectionReference.where
        CollectionReference.where = collection_where

    def query_where(
        self: Any,
        field_path: Optional[str] = None,
        op_string: Optional[str] = None,
        value: Any = None,
        filter: Any = None,
    ) -> Any:
        if filter:
            return self._where(filter.field_path, filter.op_string, filter.value)
        return self._where(field_path, op_string, value)

    if not hasattr(Query, "_where"):
        Query._where = Query.where
        Query.where = query_where

    if not hasattr(DocumentReference, "_orig_update"):
        DocumentReference._orig_update = DocumentReference.update

        def patched_update(self: Any, data: dict[str, Any]) -> Any:
            current_data = self.get().to_dict() or {}
            new_data = {}
            for k, v in data.items():
                if isinstance(v, MockArrayUnion):
                    existing = current_data.get(k, [])
                    if not isinstance(existing, list):
                        existing = []
                    merged = list(existing)
                    for item in v.values:
                        if item not in merged:
                            merged.append(item)
                    new_data[k] = merged
                elif isinstance(v, MockArrayRemove):
                    existing = current_data.get(k, [])
                    if not isinstance(existing, list):
                        existing = []
                    new_data[k] = [i for i in existing if i not in v.values]
                else:
                    new_data[k] = v
            return self._orig_update(new_data)

        DocumentReference.update = patched_update


def mock_firestore_module() -> MagicMock:
    """A stand-in for ``firebase_admin.firestore`` that mockfirestore understands."""
    module = MagicMock()
    module.ArrayUnion = MockArrayUnion
    module.ArrayRemove = MockArrayRemove
    module.FieldFilter = MockFieldFilter
    module.SERVER_TIMESTAMP = "SERVER_TIMESTAMP"
    return module


class MockBatch:
    """Records writes and applies them to a MockFirestore on commit."""

    def __init__(self, db: Any) -> None:
        self.db = db
        self.updates: list[tuple[str, Any, Any]] = []
        self.commit = unittest.mock.MagicMock(side_effect=self._real_commit)

    def update(self, ref: Any, data: Any) -> None:
        self.updates.append(("update", ref, data))

    def set(self, ref: Any, data: Any, merge: bool = False) -> None:
        self.updates.append(("merge" if merge else "set", ref, data))

    def delete(self, ref: Any) -> None:
        self.updates.append(("delete", ref, None))

    @property
    def deletes(self) -> list[Any]:
        return [ref for op, ref, _ in self.updates if op == "delete"]

    def _real_commit(self) -> None:
        if len(self.updates) > FIRESTORE_BATCH_LIMIT:
            raise ValueError("A batch can contain at most 500 operations.")
        for op, ref, data in self.updates:
            if op == "delete":
                ref.delete()
            elif op == "set":
                ref.set(data)
            elif op == "merge" and ref.get().exists:
                ref.update(data)
            elif op == "merge":
                ref.set(data)
            else:
                ref.update(data)


class FirestoreTestCase(unittest.TestCase):
    """MockFirestore with batches, patched transforms and an app context."""

    #: Modules whose ``firestore`` attribute is replaced for the test.
    firestore_modules: tuple[str, ...] = ()

    def setUp(self) -> None:
        patch_mockfirestore()
        self.db = MockFirestore()
        self.batches: list[MockBatch] = []

        def new_batch() -> MockBatch:
            batch = MockBatch(self.db)
            self.batches.append(batch)
            return batch

        self.db.batch = MagicMock(side_effect=new_batch)

        self.mock_firestore = mock_firestore_module()
        for module in self.firestore_modules:
            patcher = patch(f"{module}.firestore", new=self.mock_firestore)
            patcher.start()
            self.addCleanup(patcher.stop)

        init_patcher = patch("firebase_admin.initialize_app")
        init_patcher.start()
        self.addCleanup(init_patcher.stop)

        self.app = create_app({"TESTING": True, "WTF_CSRF_ENABLED": False})
        self.app_context = self.app.app_context()
        self.app_context.push()
        self.addCleanup(self.app_context.pop)
