"""Tests for data models."""

import pytest
from pydantic import TypeAdapter, ValidationError

from epubspoon.models import (
    BookRecord,
    ErrorState,
    IdleState,
    ImportedBook,
    LoadingState,
    ReadyState,
    SurfaceState,
)


def _ready(segments: int = 3, index: int = 0) -> ReadyState:
    return ReadyState(
        content_hash="a" * 32,
        title="Book",
        segments=[f"Excerpt {i}." for i in range(segments)],
        current_index=index,
    )


class TestBookRecord:
    def test_create_record(self) -> None:
        record = BookRecord(title="Book", chapters=["One.", "Two."], segments=["One.", "Two."])
        assert record.title == "Book"
        assert record.chapters == ["One.", "Two."]

    def test_chapters_optional(self) -> None:
        record = BookRecord(title="Book", segments=["One."])
        assert record.chapters is None

    def test_record_is_frozen(self) -> None:
        record = BookRecord(title="Book", segments=["One."])
        with pytest.raises(ValidationError):
            record.title = "Other"  # type: ignore[misc]

    def test_record_serialization(self) -> None:
        record = BookRecord(title="Book", chapters=["One."], segments=["One."])
        restored = BookRecord.model_validate_json(record.model_dump_json())
        assert restored == record

    def test_segments_required(self) -> None:
        with pytest.raises(ValidationError):
            BookRecord(title="Book")  # type: ignore[call-arg]


class TestImportedBook:
    def test_defaults(self) -> None:
        imported = ImportedBook(content_hash="a" * 32, record=BookRecord(title="B", segments=["x"]))
        assert imported.current_index == 0
        assert imported.from_cache is False


class TestReadyState:
    def test_total_and_is_last(self) -> None:
        assert _ready(3, 0).total == 3
        assert not _ready(3, 1).is_last
        assert _ready(3, 2).is_last

    def test_clamp(self) -> None:
        state = _ready(3)
        assert state.clamp(-4) == 0
        assert state.clamp(1) == 1
        assert state.clamp(99) == 2

    def test_in_range(self) -> None:
        state = _ready(3)
        assert state.in_range(0)
        assert state.in_range(2)
        assert not state.in_range(3)
        assert not state.in_range(-1)

    def test_state_is_frozen(self) -> None:
        state = _ready(3)
        with pytest.raises(ValidationError):
            state.current_index = 2  # type: ignore[misc]
        assert state.model_copy(update={"current_index": 2}).current_index == 2


class TestSurfaceState:
    @pytest.fixture
    def adapter(self) -> TypeAdapter:
        return TypeAdapter(SurfaceState)

    def test_parses_by_kind(self, adapter: TypeAdapter) -> None:
        assert isinstance(adapter.validate_python({"kind": "idle"}), IdleState)
        assert isinstance(adapter.validate_python({"kind": "loading"}), LoadingState)
        error = adapter.validate_python({"kind": "error", "message": "Bad file"})
        assert isinstance(error, ErrorState)
        assert error.message == "Bad file"

    def test_ready_round_trip(self, adapter: TypeAdapter) -> None:
        state = _ready(2, 1)
        restored = adapter.validate_json(state.model_dump_json())
        assert restored == state

    def test_unknown_kind_rejected(self, adapter: TypeAdapter) -> None:
        with pytest.raises(ValidationError):
            adapter.validate_python({"kind": "paused"})
