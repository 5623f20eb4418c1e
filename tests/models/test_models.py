"""Tests for the entity and parameter models."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from taskvault.models import (
    AgendaRange,
    SubtaskCreate,
    SubtaskStats,
    SubtaskUpdate,
    Task,
    TaskCreate,
    TaskFilters,
    TaskListUpdate,
    TaskUpdate,
)


class TestCreateModels:
    def test_unknown_keys_rejected(self):
        with pytest.raises(ValidationError):
            TaskCreate(title="x", colour="red")

    def test_empty_title_rejected(self):
        with pytest.raises(ValidationError):
            TaskCreate(title="")

    @pytest.mark.parametrize("priority", [-1, 4])
    def test_priority_bounds(self, priority):
        with pytest.raises(ValidationError):
            TaskCreate(title="x", priority=priority)

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            TaskCreate(title="x", status="archived")

    def test_to_params_lists_every_column(self):
        params = TaskCreate(title="x").to_params()
        assert params["title"] == "x"
        assert params["list_id"] is None
        assert params["status"] == "todo"

    def test_naive_datetime_is_utc(self):
        task = TaskCreate(title="x", start_date=datetime(2024, 1, 1))
        assert task.start_date == int(datetime(2024, 1, 1, tzinfo=UTC).timestamp() * 1000)

    def test_subtask_done_stored_as_int(self):
        params = SubtaskCreate(task_id="t", title="x", done=True).to_params()
        assert params["done"] == 1


class TestUpdateModels:
    def test_only_supplied_fields(self):
        assert TaskUpdate(priority=3).changes() == {"priority": 3}
        assert TaskUpdate().changes() == {}

    def test_explicit_none_is_kept(self):
        assert TaskUpdate(due_date=None).changes() == {"due_date": None}

    @pytest.mark.parametrize(
        "model, field",
        [(TaskUpdate, "title"), (TaskUpdate, "status"), (TaskListUpdate, "name")],
    )
    def test_required_columns_cannot_be_nulled(self, model, field):
        with pytest.raises(ValidationError, match="cannot be null"):
            model(**{field: None})

    def test_subtask_done_change_is_int(self):
        assert SubtaskUpdate(done=False).changes() == {"done": 0}


class TestRowModels:
    def test_sqlite_row_values_coerced(self):
        task = Task(
            id="t1",
            title="x",
            created_at=1,
            updated_at=1,
            version=2,
            dirty=0,
            deleted_at=5,
        )
        assert task.dirty is False
        assert task.is_deleted


class TestHelpers:
    def test_filters_reject_bad_paging(self):
        with pytest.raises(ValidationError):
            TaskFilters(limit=0)
        with pytest.raises(ValidationError):
            TaskFilters(offset=-1)

    def test_agenda_range_accepts_datetimes(self):
        window = AgendaRange(
            start=datetime(2024, 1, 1, tzinfo=UTC), end=datetime(2024, 1, 2, tzinfo=UTC)
        )
        assert window.end - window.start == 24 * 60 * 60 * 1000

    def test_subtask_percentage(self):
        assert SubtaskStats(total=3, done=1).percentage == 33
        assert SubtaskStats().percentage == 0
