"""Tests for festgraph.tasks.extract — frontmatter and legacy body parsing."""

from __future__ import annotations

from festgraph.config import Config
from festgraph.tasks.extract import (
    extract_metadata,
    is_tracked,
    leading_number,
    legacy_dependencies,
    parse_frontmatter,
)
from festgraph.tasks.model import TaskStatus


class TestLeadingNumber:
    """Task numbers from filename prefixes."""

    def test_zero_padded(self):
        """Leading zeros are dropped from the number."""
        assert leading_number("01_setup.md") == 1
        assert leading_number("012_big.md") == 12

    def test_no_digits(self):
        """Names without a digit prefix have no number."""
        assert leading_number("SEQUENCE_GOAL.md") is None
        assert leading_number("notes.md") is None


class TestParseFrontmatter:
    """Splitting YAML frontmatter from the body."""

    def test_no_frontmatter(self):
        """Content without a --- opener is all body."""
        meta, body = parse_frontmatter("# Title\nbody\n")
        assert meta is None
        assert body == "# Title\nbody\n"

    def test_simple_mapping(self):
        """A closed block parses as a mapping."""
        meta, body = parse_frontmatter("---\nfest_type: task\n---\n# Body\n")
        assert meta == {"fest_type": "task"}
        assert body == "# Body\n"

    def test_empty_frontmatter_is_empty_mapping(self):
        """An empty block is an empty mapping, not None."""
        meta, _ = parse_frontmatter("---\n---\nbody\n")
        assert meta == {}

    def test_unclosed_frontmatter_ignored(self):
        """Without a closing ---, everything stays body."""
        meta, body = parse_frontmatter("---\nfest_type: task\n# never closed\n")
        assert meta is None
        assert body.startswith("---")

    def test_malformed_yaml_ignored(self):
        """Bad YAML gives None but still strips the block."""
        meta, body = parse_frontmatter("---\nkey: [unclosed\n---\nbody\n")
        assert meta is None
        assert body == "body\n"

    def test_non_mapping_ignored(self):
        """A YAML list is not frontmatter."""
        meta, _ = parse_frontmatter("---\n- a\n- b\n---\n")
        assert meta is None


class TestTracking:
    """The tracking flag."""

    def test_default_tracked(self):
        """Files are tracked unless they opt out."""
        assert is_tracked("# no frontmatter\n") is True
        assert is_tracked("---\nfest_type: task\n---\n") is True

    def test_tracking_false(self):
        """tracking: false opts out."""
        assert is_tracked("---\ntracking: false\n---\n") is False

    def test_tracking_true(self):
        """tracking: true is the same as the default."""
        assert is_tracked("---\ntracking: true\n---\n") is True

    def test_malformed_frontmatter_tracked(self):
        """Unparseable frontmatter does not hide a file."""
        assert is_tracked("---\ntracking: [\n---\n") is True


class TestLegacyDependencies:
    """The body-level Dependencies: line."""

    def test_comma_list(self):
        """Comma-separated values keep their order."""
        assert legacy_dependencies("Dependencies: 01_setup, 02_design\n") == [
            "01_setup",
            "02_design",
        ]

    def test_case_insensitive_label(self):
        """The label matches in any case."""
        assert legacy_dependencies("DEPENDENCIES: 01_a\n") == ["01_a"]

    def test_none_values(self):
        """None, none and an empty value mean no references."""
        assert legacy_dependencies("Dependencies: None\n") == []
        assert legacy_dependencies("dependencies: none\n") == []
        assert legacy_dependencies("Dependencies:\n") == []

    def test_blockquote_header_stops_at_pipe(self):
        """A | ends the value inside a blockquote header."""
        body = "> **Dependencies:** 01_setup | **Autonomy Level:** high\n"
        assert legacy_dependencies(body) == ["01_setup"]

    def test_value_does_not_run_past_line(self):
        """The value never spans lines."""
        body = "Dependencies: 01_a\n\n## Next section\n"
        assert legacy_dependencies(body) == ["01_a"]

    def test_soft_label_not_matched(self):
        """A plain Soft Dependencies: label is skipped."""
        assert legacy_dependencies("Soft Dependencies: 01_a\n") == []

    def test_bold_soft_label_not_matched(self):
        """Bold markers between Soft and the label do not expose it."""
        assert legacy_dependencies("**Soft** Dependencies: 02_docs\n") == []
        assert legacy_dependencies("**Soft Dependencies:** 02_docs\n") == []
        assert legacy_dependencies("*soft*  dependencies: 02_docs\n") == []

    def test_hard_line_after_soft_line(self):
        """The first non-soft Dependencies: line is the one read."""
        body = "**Soft** Dependencies: 02_docs\n**Dependencies:** 01_a\n"
        assert legacy_dependencies(body) == ["01_a"]

    def test_word_ending_in_soft_is_not_a_soft_label(self):
        """Only the standalone word soft marks a soft label."""
        assert legacy_dependencies("Microsoft Dependencies: 01_a\n") == ["01_a"]

    def test_no_label(self):
        """A body without the label yields nothing."""
        assert legacy_dependencies("# Task\n\nJust text.\n") == []


class TestExtractMetadata:
    """Combining frontmatter and body into TaskMetadata."""

    def test_all_fields(self, render_frontmatter):
        """Every frontmatter field lands in its slot."""
        content = render_frontmatter(
            fest_dependencies=["01_setup", "../02_other/01_api"],
            fest_soft_dependencies=["02_docs"],
            fest_parallel_group=7,
            fest_autonomy="High",
            fest_status="completed",
        )
        meta = extract_metadata("x.md", content)
        assert meta.dependencies == ["01_setup", "../02_other/01_api"]
        assert meta.soft_deps == ["02_docs"]
        assert meta.parallel_group == 7
        assert meta.autonomy_level == "high"
        assert meta.status is TaskStatus.COMPLETE
        assert meta.tracked is True

    def test_defaults_without_metadata(self):
        """Plain markdown yields the defaults."""
        meta = extract_metadata("x.md", "# Just a title\n")
        assert meta.dependencies == []
        assert meta.soft_deps == []
        assert meta.parallel_group is None
        assert meta.autonomy_level == ""
        assert meta.status is TaskStatus.PENDING

    def test_legacy_line_and_frontmatter_combined(self, render_frontmatter):
        """Legacy refs come first; duplicates are dropped."""
        content = render_frontmatter(fest_dependencies=["02_b"]) + "Dependencies: 01_a, 02_b\n"
        meta = extract_metadata("x.md", content)
        assert meta.dependencies == ["01_a", "02_b"]

    def test_frontmatter_key_not_read_as_legacy_line(self, render_frontmatter):
        """fest_soft_dependencies is not a legacy label."""
        content = render_frontmatter(fest_soft_dependencies=["01_a"])
        meta = extract_metadata("x.md", content)
        assert meta.dependencies == []
        assert meta.soft_deps == ["01_a"]

    def test_bold_soft_body_line_adds_no_hard_dependency(self):
        """A **Soft** Dependencies: body line leaves both lists empty."""
        meta = extract_metadata("x.md", "**Soft** Dependencies: 02_docs\n")
        assert meta.dependencies == []
        assert meta.soft_deps == []

    def test_string_dependency_field(self):
        """A comma string is accepted in place of a list."""
        meta = extract_metadata("x.md", "---\nfest_dependencies: 01_a, 01_b\n---\n")
        assert meta.dependencies == ["01_a", "01_b"]

    def test_bad_parallel_group_ignored(self):
        """A non-integer group falls back to None."""
        meta = extract_metadata("x.md", "---\nfest_parallel_group: soon\n---\n")
        assert meta.parallel_group is None

    def test_autonomy_from_body(self):
        """Autonomy Level: in the body is lowercased."""
        meta = extract_metadata("x.md", "**Autonomy Level:** Medium\n")
        assert meta.autonomy_level == "medium"

    def test_in_progress_status(self):
        """fest_status: in_progress maps to IN_PROGRESS."""
        meta = extract_metadata("x.md", "---\nfest_status: in_progress\n---\n")
        assert meta.status is TaskStatus.IN_PROGRESS

    def test_untracked(self):
        """tracking: false clears the tracked flag."""
        meta = extract_metadata("x.md", "---\ntracking: false\n---\n")
        assert meta.tracked is False

    def test_custom_keys(self):
        """Config keys rename the frontmatter fields."""
        cfg = Config(hard_deps_key="requires")
        meta = extract_metadata("x.md", "---\nrequires:\n  - 01_a\n---\n", cfg)
        assert meta.dependencies == ["01_a"]
