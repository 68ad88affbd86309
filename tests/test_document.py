"""Tests for the document assembler."""

from todo_md.document import DocumentLink, parse_document, parse_text
from todo_md.due_date import DueState
from todo_md.task import Link, Range


class TestInheritedTags:
    """Test '## ' section tags."""

    def test_tags_inherited_until_comment(self, config):
        document = parse_document(["## #work #urgent", "buy milk", "# notes", "call mom"], config)
        buy, call = document.tasks
        assert buy.tags == ["work", "urgent"]
        assert call.tags == []

    def test_tag_comment_replaces_previous_tags(self, config):
        document = parse_document(["## #a", "t1 #own", "## #b", "t2"], config)
        t1, t2 = document.tasks
        assert t1.tags == ["own", "a"]
        assert t2.tags == ["b"]

    def test_inheritance_spans_blank_lines(self, config):
        document = parse_document(["## #home", "", "dust", "", "sweep"], config)
        assert [task.tags for task in document.tasks] == [["home"], ["home"]]

    def test_comment_lines_recorded(self, config):
        document = parse_document(["# one", "task", "## #t", "", "other"], config)
        assert document.comment_lines == [Range(0, 0, 0), Range(2, 0, 0)]


class TestHierarchy:
    """Test the indentation tree."""

    def test_two_children_and_second_root(self, config):
        document = parse_document(["parent", "    child1", "    child2", "other"], config)
        assert document.roots == [0, 3]
        assert document.children == {0: [1, 2]}

        tree = document.tasks_as_tree
        assert len(tree) == 2
        assert [node.task.title for node in tree[0].subtasks] == ["child1", "child2"]
        assert tree[1].subtasks == []
        assert document.tasks[1].parent_line_number == 0

    def test_nearest_lesser_indent_wins(self, config):
        document = parse_document(["a", "    b", "        c", "    d"], config)
        parents = {task.title: task.parent_line_number for task in document.tasks}
        assert parents == {"a": None, "b": 0, "c": 1, "d": 0}

        tree = document.tasks_as_tree
        assert [node.task.title for node in tree[0].subtasks] == ["b", "d"]
        assert tree[0].subtasks[0].subtasks[0].task.title == "c"

    def test_indent_jump(self, config):
        document = parse_document(["a", "            deep"], config)
        assert document.tasks[1].indent_level == 3
        assert document.tasks[1].parent_line_number == 0

    def test_indented_first_task_is_root(self, config):
        document = parse_document(["    orphan", "top"], config)
        assert document.tasks[0].parent_line_number is None
        assert document.roots == [0, 1]

    def test_line_numbers_survive_blank_lines(self, config):
        document = parse_document(["a", "", "    b"], config)
        assert document.tasks[1].line_number == 2
        assert document.tasks[1].parent_line_number == 0

    def test_flat_tasks_stay_in_source_order(self, config):
        document = parse_document(["a", "    b", "c", "    d"], config)
        assert [task.title for task in document.tasks] == ["a", "b", "c", "d"]
        assert document.subtasks_of(document.tasks[2])[0].title == "d"


class TestLinksAndOverrides:
    """Test information added after tokenizing."""

    def test_links_attached_by_line(self, config):
        links = [
            DocumentLink(1, 5, 24, "https://example.com"),
            DocumentLink(1, 0, 3, None),
            DocumentLink(0, 0, 4, "file:///tmp/x", scheme="file"),
        ]
        document = parse_document(["first", "read https://example.com"], config, links)
        assert document.tasks[0].links == [Link((0, 4), "file:///tmp/x", "file")]
        assert document.tasks[1].links == [Link((5, 24), "https://example.com", "https")]

    def test_overdue_override_rebuilds_due(self, config, now):
        document = parse_document(["{overdue:2024-01-08} water {due:ed}"], config)
        task = document.tasks[0]
        assert task.due.overdue == "2024-01-08"
        assert task.due.is_due(now) == DueState.OVERDUE
        assert task.due.overdue_in_days(now) == 2

    def test_override_without_due_is_kept_as_text_value(self, config):
        task = parse_document(["water {overdue:2024-01-08}"], config).tasks[0]
        assert task.due is None
        assert task.overdue == "2024-01-08"


class TestDocumentHelpers:
    """Test lookups and aggregates."""

    def test_parse_text_and_lookup(self, config):
        document = parse_text("a +x @home #t\n\nb +y #t #u\n", config)
        assert document.task_at_line(2).title == "b"
        assert document.task_at_line(1) is None
        assert document.tags == ["t", "u"]
        assert document.projects == ["x", "y"]
        assert document.contexts == ["home"]

    def test_parse_text_splits_on_line_feeds_only(self, config):
        document = parse_text("a\x0cb\nc\r\nd\u2028e", config)
        assert [task.line_number for task in document.tasks] == [0, 1, 2]
        assert document.tasks[1].title == "c"
        assert document.tasks[1].raw_text == "c"

    def test_group_by(self, config):
        document = parse_text("a #t\nb #t #u\nc", config)
        groups = document.group_by("tag")
        assert list(groups) == ["t", "u"]
        assert [task.title for task in groups["t"]] == ["a", "b"]

    def test_each_parse_is_independent(self, config):
        lines = ["## #x", "a"]
        first = parse_document(lines, config)
        second = parse_document(lines, config)
        assert first.tasks == second.tasks
        assert first.tasks[0] is not second.tasks[0]
