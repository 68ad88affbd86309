"""Tests for the text edit producers."""

from datetime import datetime

from todo_md.config import ConfigModel
from todo_md.document import parse_document
from todo_md.edits import (
    apply_block_edit,
    apply_edits,
    archivable_tasks,
    needs_recurring_reset,
    reset_recurring_edits,
    sort_block_edit,
    toggle_done_edits,
)
from todo_md.sort import SortProperty


def toggled(line, config, now):
    task = parse_document([line], config).tasks[0]
    return apply_edits([line], toggle_done_edits(task, config, now))[0]


class TestToggleDone:
    """Test completing and reopening tasks."""

    def test_mark_done(self, config, now):
        assert toggled("buy milk", config, now) == "x buy milk"

    def test_mark_done_keeps_indent(self, config, now):
        assert toggled("    buy milk", config, now) == "    x buy milk"

    def test_reopen(self, config, now):
        assert toggled("x buy milk", config, now) == "buy milk"
        assert toggled("  x buy milk", config, now) == "  buy milk"

    def test_completion_date_mode(self, now):
        config = ConfigModel(add_completion_date=True)
        assert toggled("buy milk  ", config, now) == "buy milk {cm:2024-01-10}  "

    def test_completion_date_with_time(self, now):
        config = ConfigModel(add_completion_date=True, completion_date_include_time=True)
        assert toggled("buy milk", config, now) == "buy milk {cm:2024-01-10T12:00:00}"

    def test_reopen_removes_completion_date(self, config, now):
        assert toggled("buy milk {cm:2024-01-10}", config, now) == "buy milk"
        assert toggled("x buy milk {cm:2024-01-10} +home", config, now) == "buy milk +home"

    def test_counter_increments(self, config, now):
        assert toggled("{count:1/3} refill", config, now) == "{count:2/3} refill"
        assert toggled("push ups {count:9/12}", config, now) == "push ups {count:10/12}"

    def test_complete_counter_wraps(self, config, now):
        assert toggled("{count:3/3} refill", config, now) == "{count:0/3} refill"


class TestRecurringReset:
    """Test the new-day transition for recurring tasks."""

    LAST_VISIT = datetime(2024, 1, 9, 20, 0)
    NOW = datetime(2024, 1, 10, 8, 0)

    def reset(self, lines, config):
        tasks = parse_document(lines, config).tasks
        return apply_edits(lines, reset_recurring_edits(tasks, config, self.LAST_VISIT, self.NOW))

    def test_needs_reset(self):
        assert needs_recurring_reset(None, self.NOW) is True
        assert needs_recurring_reset(self.LAST_VISIT, self.NOW) is True
        assert needs_recurring_reset(datetime(2024, 1, 10, 7, 0), self.NOW) is False

    def test_done_recurring_reopened(self, config):
        assert self.reset(["x water {due:ed}"], config) == ["water {due:ed}"]

    def test_missed_recurring_marked_overdue(self, config):
        assert self.reset(["feed cat {due:ed}"], config) == ["feed cat {due:ed} {overdue:2024-01-09}"]

    def test_not_due_at_last_visit_untouched(self, config):
        """2024-01-09 is a Tuesday."""
        assert self.reset(["gym {due:mon}"], config) == ["gym {due:mon}"]

    def test_existing_override_kept(self, config):
        lines = ["bathe {due:ed} {overdue:2024-01-08}"]
        assert self.reset(lines, config) == lines

    def test_done_recurring_loses_override(self, config):
        assert self.reset(["x walk {due:ed} {overdue:2024-01-05}"], config) == ["walk {due:ed}"]

    def test_non_recurring_untouched(self, config):
        lines = ["x pay bill {due:2024-01-01}", "call bank {due:2024-01-01}"]
        assert self.reset(lines, config) == lines

    def test_full_counter_reset(self, config):
        lines = self.reset(["{count:3/3} push ups {due:ed}"], config)
        assert lines == ["{count:0/3} push ups {due:ed}"]
        assert parse_document(lines, config).tasks[0].done is False

    def test_counter_not_full_with_done_marker(self, config):
        assert self.reset(["x {count:1/3} push ups {due:ed}"], config) == ["{count:1/3} push ups {due:ed}"]

    def test_first_visit_counts_as_now(self, config):
        lines = ["x water {due:ed}", "feed cat {due:ed}"]
        tasks = parse_document(lines, config).tasks
        edits = reset_recurring_edits(tasks, config, None, self.NOW)
        assert apply_edits(lines, edits) == ["water {due:ed}", "feed cat {due:ed}"]

    def test_several_lines(self, config):
        lines = ["x water {due:ed}", "plain", "feed cat {due:ed}"]
        assert self.reset(lines, config) == [
            "water {due:ed}", "plain", "feed cat {due:ed} {overdue:2024-01-09}",
        ]


class TestArchiveAndSortBlock:
    """Test archiving and block sorting."""

    def test_archivable_tasks(self, config):
        tasks = parse_document(["x done", "open", "x water {due:ed}", "{cm:2024-01-01} old"], config).tasks
        assert [task.title for task in archivable_tasks(tasks)] == ["done", "old"]

    def test_sort_block_drops_non_task_lines(self, config, now):
        lines = ["(B) b", "# c", "(A) a", "z"]
        document = parse_document(lines, config)
        edit = sort_block_edit(document, SortProperty.PRIORITY, now, 0, 2)
        assert edit.lines == ["(A) a", "(B) b"]
        assert apply_block_edit(lines, edit) == ["(A) a", "(B) b", "z"]

    def test_sort_block_without_tasks(self, config, now):
        document = parse_document(["# only", "", "a"], config)
        assert sort_block_edit(document, SortProperty.PRIORITY, now, 0, 1) is None
