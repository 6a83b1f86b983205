"""
Unit tests for the Merge Engine.

Covers idempotence, ordering, in-place updates, duplicate suppression,
marker stability and import merging.
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from core.domain.issue import Issue
from core.services.ac_formatter import AcceptanceCriteriaFormatter
from core.services.anchor_locator import TextAnchorLocator, MARKER_LINE
from core.services.merge_engine import MergeEngine
from infrastructure.files.spec_file_repository import DEFAULT_CONTENT
from profiles.profile_manager import ProfileManager

PLAYWRIGHT_IMPORT = "import { test, expect } from '@playwright/test';"
SETUP_IMPORT = "import { setupDemo } from '../utils/DemoSetup';"

HAND_WRITTEN = """test('hand written', async ({ page }) => {
  expect(1).toBe(1);
});"""

AFTER_MARKER = "test('after marker', async () => {});"


class MergeTestBase:
    """Shared setup for merge tests."""

    def setup_method(self):
        self.manager = ProfileManager(load_bundled=False)
        self.profile = self.manager.get_profile("CRM")
        self.formatter = AcceptanceCriteriaFormatter(self.manager)
        self.locator = TextAnchorLocator()
        self.engine = MergeEngine(self.formatter, locator=self.locator)

    def merge(self, content, issues, allow_duplicates=False, exists=True):
        state = self.locator.scan(content, exists=exists)
        return self.engine.merge(state, issues, self.profile, allow_duplicates)

    def render(self, issue):
        return self.formatter.render(issue, self.profile)


class TestMissingFile(MergeTestBase):
    """Merging into the placeholder content of a missing file."""

    def test_creates_imports_placeholder_and_blocks(self):
        issues = [Issue("CRM-2", "Second", "b"), Issue("CRM-1", "First", "a")]
        result = self.merge(DEFAULT_CONTENT, issues, exists=False)

        expected = "\n\n".join([
            PLAYWRIGHT_IMPORT + "\n" + SETUP_IMPORT,
            "// Playwright test file",
            self.render(issues[1]),
            self.render(issues[0]),
        ]) + "\n"
        assert result.content == expected
        assert result.added == ["CRM-1", "CRM-2"]
        assert result.imports_added == [PLAYWRIGHT_IMPORT, SETUP_IMPORT]
        assert result.changed


class TestIdempotence(MergeTestBase):
    """Merging the output again must not change it."""

    def test_second_run_is_byte_identical(self):
        issues = [Issue("CRM-1", "First", "a\nb"), Issue("CRM-2", "Second", "c")]
        first = self.merge(DEFAULT_CONTENT, issues)
        second = self.merge(first.content, issues)

        assert second.content == first.content
        assert not second.changed
        assert second.unchanged == ["CRM-1", "CRM-2"]
        assert second.added == []
        assert second.imports_added == []

    def test_idempotent_with_marker_and_hand_written_code(self):
        content = (
            PLAYWRIGHT_IMPORT + "\n\n" + HAND_WRITTEN + "\n\n"
            + MARKER_LINE + "\n\n" + AFTER_MARKER + "\n"
        )
        issues = [Issue("CRM-1", "First", "a")]
        first = self.merge(content, issues)
        second = self.merge(first.content, issues)

        assert second.content == first.content

    def test_idempotent_after_update(self):
        first = self.merge(DEFAULT_CONTENT, [Issue("CRM-1", "First", "a")])
        updated_issues = [Issue("CRM-1", "First (renamed)", "a\nb")]
        second = self.merge(first.content, updated_issues)
        third = self.merge(second.content, updated_issues)

        assert second.updated == ["CRM-1"]
        assert third.content == second.content

    def test_merge_is_deterministic(self):
        issues = [Issue("CRM-3", "Third", "x"), Issue("CRM-1", "First", "y")]
        assert self.merge(DEFAULT_CONTENT, issues).content == self.merge(DEFAULT_CONTENT, list(issues)).content


class TestOrdering(MergeTestBase):
    """New blocks are ordered by numeric key suffix."""

    def test_numeric_not_lexical_order(self):
        issues = [Issue("X-10", "Ten", "t"), Issue("X-2", "Two", "t"), Issue("X-1", "One", "t")]
        result = self.merge(DEFAULT_CONTENT, issues)

        assert result.added == ["X-1", "X-2", "X-10"]
        positions = [result.content.index(f"@{key}'") for key in ("X-1", "X-2", "X-10")]
        assert positions == sorted(positions)

    def test_repeated_key_in_batch_last_value_wins(self):
        issues = [
            Issue("CRM-1", "Old title", "old"),
            Issue("CRM-2", "Other", "o"),
            Issue("CRM-1", "New title", "new"),
        ]
        result = self.merge(DEFAULT_CONTENT, issues)

        assert result.added == ["CRM-1", "CRM-2"]
        assert "New title @CRM-1" in result.content
        assert "Old title" not in result.content
        assert result.content.count("@CRM-1'") == 1

    def test_order_issues_is_stable_for_equal_suffixes(self):
        issues = [Issue("B-1", "b", "x"), Issue("A-1", "a", "x")]
        assert [issue.key for issue in MergeEngine.order_issues(issues)] == ["B-1", "A-1"]


class TestUpdateInPlace(MergeTestBase):
    """Known keys are replaced where they are, never skipped."""

    def test_existing_block_is_replaced_in_place(self):
        old_block = self.render(Issue("CRM-1", "First", "old criterion"))
        content = (
            PLAYWRIGHT_IMPORT + "\n" + SETUP_IMPORT + "\n\n"
            + old_block + "\n\n" + HAND_WRITTEN + "\n"
        )
        new_issue = Issue("CRM-1", "First", "new criterion")
        result = self.merge(content, [new_issue])

        assert result.updated == ["CRM-1"]
        assert result.skipped_duplicates == []
        assert "old criterion" not in result.content
        # Block stays ahead of the hand written test
        assert result.content.index("@CRM-1'") < result.content.index("hand written")
        assert result.content.endswith(HAND_WRITTEN + "\n")

    def test_known_key_is_updated_even_if_text_exists_elsewhere(self):
        stale = self.render(Issue("CRM-1", "First", "stale"))
        fresh_issue = Issue("CRM-1", "First", "fresh")
        fresh = self.render(fresh_issue)
        content = (
            PLAYWRIGHT_IMPORT + "\n" + SETUP_IMPORT + "\n\n"
            + stale + "\n\n"
            + "test.describe('Legacy wrapper @OLD-1', () => {\n"
            + fresh + "\n"
            + "});\n"
        )
        result = self.merge(content, [fresh_issue])

        assert result.updated == ["CRM-1"]
        assert result.skipped_duplicates == []

    def test_identical_block_is_unchanged(self):
        issue = Issue("CRM-1", "First", "a")
        content = PLAYWRIGHT_IMPORT + "\n" + SETUP_IMPORT + "\n\n" + self.render(issue) + "\n"
        result = self.merge(content, [issue])

        assert result.unchanged == ["CRM-1"]
        assert result.content == content


class TestDuplicateSuppression(MergeTestBase):
    """Unknown keys whose text already exists are skipped."""

    def _wrapped_content(self, issue):
        return (
            PLAYWRIGHT_IMPORT + "\n" + SETUP_IMPORT + "\n\n"
            "test.describe('Legacy wrapper @OLD-1', () => {\n"
            + self.render(issue) + "\n"
            "});\n"
        )

    def test_nested_copy_is_skipped(self):
        issue = Issue("X-5", "Nested", "n")
        content = self._wrapped_content(issue)
        result = self.merge(content, [issue])

        assert result.skipped_duplicates == ["X-5"]
        assert result.added == []
        assert result.content == content

    def test_allow_duplicates_inserts_anyway(self):
        issue = Issue("X-5", "Nested", "n")
        content = self._wrapped_content(issue)
        result = self.merge(content, [issue], allow_duplicates=True)

        assert result.added == ["X-5"]
        assert result.content.count(self.render(issue)) == 2


class TestMarker(MergeTestBase):
    """New blocks go right before the marker; text after it is untouched."""

    def setup_method(self):
        super().setup_method()
        self.content = (
            PLAYWRIGHT_IMPORT + "\n\n" + HAND_WRITTEN + "\n\n"
            + MARKER_LINE + "\n\n" + AFTER_MARKER + "\n"
        )

    def test_blocks_inserted_before_marker(self):
        issue = Issue("CRM-1", "First", "a")
        result = self.merge(self.content, [issue])

        expected = "\n\n".join([
            PLAYWRIGHT_IMPORT + "\n" + SETUP_IMPORT,
            HAND_WRITTEN,
            self.render(issue),
            MARKER_LINE,
            AFTER_MARKER,
        ]) + "\n"
        assert result.content == expected
        assert result.imports_added == [SETUP_IMPORT]

    def test_marker_stays_put_across_runs(self):
        first = self.merge(self.content, [Issue("CRM-1", "First", "a")])
        second = self.merge(first.content, [Issue("CRM-1", "First", "a"), Issue("CRM-2", "Second", "b")])

        content = second.content
        assert content.index("@CRM-1'") < content.index("@CRM-2'") < content.index(MARKER_LINE)
        assert content.endswith(MARKER_LINE + "\n\n" + AFTER_MARKER + "\n")
        assert content.count(MARKER_LINE) == 1

    def test_without_marker_blocks_are_appended(self):
        content = PLAYWRIGHT_IMPORT + "\n\n" + HAND_WRITTEN + "\n"
        result = self.merge(content, [Issue("CRM-1", "First", "a")])

        assert result.content.index("hand written") < result.content.index("@CRM-1'")
        assert result.content.endswith("});\n")


class TestImports(MergeTestBase):
    """Profile imports are appended only when missing."""

    def test_equivalent_import_is_not_added_again(self):
        content = 'import {test,expect} from "@playwright/test"\n\n' + HAND_WRITTEN + "\n"
        result = self.merge(content, [Issue("CRM-1", "First", "a")])

        assert result.imports_added == [SETUP_IMPORT]
        assert result.content.startswith('import {test,expect} from "@playwright/test"\n' + SETUP_IMPORT + "\n\n")

    def test_existing_imports_keep_their_order(self):
        content = (
            "import { helper } from './helper';\n"
            + PLAYWRIGHT_IMPORT + "\n\n" + HAND_WRITTEN + "\n"
        )
        result = self.merge(content, [Issue("CRM-1", "First", "a")])

        assert result.content.startswith(
            "import { helper } from './helper';\n" + PLAYWRIGHT_IMPORT + "\n" + SETUP_IMPORT + "\n\n"
        )

    def test_merge_imports(self):
        merged, added = MergeEngine.merge_imports(
            ["import { a } from 'x';"], ["import {a} from \"x\"", "import 'y';"]
        )
        assert merged == ["import { a } from 'x';", "import 'y';"]
        assert added == ["import 'y';"]


class TestMergeResult(MergeTestBase):
    """Result bookkeeping."""

    def test_summary(self):
        result = self.merge(DEFAULT_CONTENT, [Issue("CRM-1", "First", "a")])
        assert result.summary() == (
            "1 added, 0 updated, 0 unchanged, 0 skipped as duplicate, 2 import(s) added"
        )

    def test_no_issues_leaves_content_alone(self):
        content = PLAYWRIGHT_IMPORT + "\n" + SETUP_IMPORT + "\n\n" + HAND_WRITTEN + "\n"
        result = self.merge(content, [])

        assert result.content == content
        assert not result.changed


class TestHandWrittenImports(MergeTestBase):
    """Import-like text outside the leading import region is left alone."""

    def test_commented_out_import_stays_in_its_comment(self):
        comment = "/*\nimport { old } from './old';\n*/"
        content = comment + "\n" + HAND_WRITTEN + "\n"
        result = self.merge(content, [Issue("CRM-1", "First", "a")])

        assert result.content.startswith(
            PLAYWRIGHT_IMPORT + "\n" + SETUP_IMPORT + "\n\n" + comment + "\n" + HAND_WRITTEN
        )
        assert result.content.count("import { old }") == 1
        assert result.imports_added == [PLAYWRIGHT_IMPORT, SETUP_IMPORT]

    def test_import_after_marker_is_not_moved(self):
        tail = MARKER_LINE + "\n\nimport { late } from './late';\n" + AFTER_MARKER + "\n"
        content = PLAYWRIGHT_IMPORT + "\n\n" + HAND_WRITTEN + "\n\n" + tail
        result = self.merge(content, [Issue("CRM-1", "First", "a")])

        assert result.content.endswith(tail)
        assert result.imports_added == [SETUP_IMPORT]


class TestMarkerOffset(MergeTestBase):
    """The scanned marker position survives in-place updates."""

    def test_update_before_marker_then_insert(self):
        old_issue = Issue("CRM-1", "First", "a")
        content = (
            PLAYWRIGHT_IMPORT + "\n" + SETUP_IMPORT + "\n\n"
            + self.render(old_issue) + "\n\n"
            + MARKER_LINE + "\n\n" + AFTER_MARKER + "\n"
        )
        updated = Issue("CRM-1", "First", "a\nb\nc")
        added = Issue("CRM-2", "Second", "d")
        result = self.merge(content, [added, updated])

        expected = "\n\n".join([
            PLAYWRIGHT_IMPORT + "\n" + SETUP_IMPORT,
            self.render(updated),
            self.render(added),
            MARKER_LINE,
            AFTER_MARKER,
        ]) + "\n"
        assert result.content == expected
        assert result.updated == ["CRM-1"]
        assert result.added == ["CRM-2"]

    def test_shift_offset(self):
        locator = TextAnchorLocator()
        content = self.render(Issue("CRM-1", "First", "a")) + "\n" + MARKER_LINE + "\n"
        state = locator.scan(content)
        span = state.existing_blocks["CRM-1"]

        assert MergeEngine.shift_offset(state.marker_index, [(span, "x")]) == len("x\n")
        assert MergeEngine.shift_offset(-1, [(span, "x")]) == -1


class TestLineEndings(MergeTestBase):
    """CRLF files come back with CRLF line breaks only."""

    SMOKE = "test('smoke', async () => {\r\n});"

    def setup_method(self):
        super().setup_method()
        self.content = (
            PLAYWRIGHT_IMPORT + "\r\n\r\n" + self.SMOKE + "\r\n\r\n"
            + MARKER_LINE + "\r\n\r\n" + AFTER_MARKER + "\r\n"
        )

    def test_crlf_file_keeps_crlf(self):
        issue = Issue("CRM-1", "First", "a\nb")
        result = self.merge(self.content, [issue])

        expected = "\r\n\r\n".join([
            PLAYWRIGHT_IMPORT + "\r\n" + SETUP_IMPORT,
            self.SMOKE,
            self.render(issue).replace("\n", "\r\n"),
            MARKER_LINE,
            AFTER_MARKER,
        ]) + "\r\n"
        assert result.content == expected
        assert "\n" not in result.content.replace("\r\n", "")

    def test_crlf_file_is_idempotent(self):
        issues = [Issue("CRM-1", "First", "a\nb"), Issue("CRM-2", "Second", "c")]
        first = self.merge(self.content, issues)
        second = self.merge(first.content, issues)

        assert second.content == first.content
        assert not second.changed
        assert second.unchanged == ["CRM-1", "CRM-2"]
