"""
Merge Engine.

Reconciles a scanned spec file with a freshly fetched batch of issues:
known issue keys are re-rendered and replaced in place, new keys are
inserted before the @TESTGEN marker (or appended), verbatim duplicates are
skipped, and missing profile imports are appended to the import block.
Line breaks follow the file: CRLF files stay CRLF.

Merging the engine's own output again with the same issues and profile
returns it byte for byte.
"""
import logging
import re
from typing import Dict, Iterable, List, Optional, Tuple

from core.domain.file_state import BlockSpan, FileState
from core.domain.issue import Issue
from core.domain.merge_result import MergeResult
from profiles.profile_config import ScaffoldProfile
from .ac_formatter import AcceptanceCriteriaFormatter
from .anchor_locator import TextAnchorLocator
from .duplicate_guard import DuplicateGuard

logger = logging.getLogger(__name__)

LEADING_BLANK_LINES = re.compile(r'^(?:[ \t]*\r?\n)+')


class MergeEngine:
    """Builds the final spec file text for one run."""

    def __init__(
        self,
        formatter: AcceptanceCriteriaFormatter,
        locator: Optional[TextAnchorLocator] = None,
        guard: Optional[DuplicateGuard] = None
    ):
        self._formatter = formatter
        self._locator = locator or TextAnchorLocator()
        self._guard = guard or DuplicateGuard()

    def merge(
        self,
        file_state: FileState,
        issues: Iterable[Issue],
        profile: ScaffoldProfile,
        allow_duplicates: bool = False
    ) -> MergeResult:
        """Merge issues into the scanned file.

        Args:
            file_state: Scanned spec file
            issues: Fetched issues, in any order
            profile: Resolved scaffold profile
            allow_duplicates: Insert new blocks even if their text already exists

        Returns:
            MergeResult with the final content and per-key decisions
        """
        original = file_state.content
        newline = '\r\n' if '\r\n' in original else '\n'
        result = MergeResult(content=original, original=original)
        replacements: List[Tuple[BlockSpan, str]] = []
        new_blocks: List[str] = []

        for issue in self.order_issues(issues):
            rendered = self._formatter.render(issue, profile).replace('\n', newline)
            span = file_state.existing_blocks.get(issue.key)

            if span is not None:
                # Known key: always an update, never a duplicate
                if span.text == rendered:
                    result.unchanged.append(issue.key)
                    logger.debug("No changes for %s", issue.key, extra={'issue_key': issue.key})
                else:
                    replacements.append((span, rendered))
                    result.updated.append(issue.key)
                    logger.info("Updating generated block for %s", issue.key, extra={'issue_key': issue.key})
                continue

            current = (newline * 2).join([original] + new_blocks)
            if self._guard.is_duplicate(rendered, current, allow_duplicates):
                result.skipped_duplicates.append(issue.key)
                logger.debug("Skipping duplicate AC for %s", issue.key, extra={'issue_key': issue.key})
                continue

            new_blocks.append(rendered)
            result.added.append(issue.key)
            logger.debug("Staged new block for %s", issue.key, extra={'issue_key': issue.key})

        imports, result.imports_added = self.merge_imports(file_state.existing_imports, profile.required_imports)

        if not replacements and not new_blocks and not result.imports_added:
            return result

        body = self.apply_replacements(original, replacements)
        marker_index = self.shift_offset(file_state.marker_index, replacements)
        result.content = self.assemble(body, imports, new_blocks, marker_index, newline)
        return result

    @staticmethod
    def order_issues(issues: Iterable[Issue]) -> List[Issue]:
        """Collapse repeated keys (last value wins) and sort by numeric key suffix.

        The sort is stable, so equal suffixes keep their fetch order.
        """
        by_key: Dict[str, Issue] = {}
        for issue in issues:
            previous = by_key.get(issue.key)
            if previous is not None and previous != issue:
                logger.warning("Issue %s appears more than once in the batch; using the last one", issue.key)
            by_key[issue.key] = issue
        return sorted(by_key.values(), key=lambda issue: issue.number)

    @staticmethod
    def apply_replacements(content: str, replacements: List[Tuple[BlockSpan, str]]) -> str:
        """Replace each span with its new text, back to front so offsets stay valid."""
        for span, text in sorted(replacements, key=lambda item: item[0].start, reverse=True):
            content = content[:span.start] + text + content[span.end:]
        return content

    @staticmethod
    def shift_offset(offset: int, replacements: List[Tuple[BlockSpan, str]]) -> int:
        """Move an offset of the original text past the replacements made before it."""
        if offset == -1:
            return offset
        delta = sum(
            len(text) - (span.end - span.start)
            for span, text in replacements if span.end <= offset
        )
        return offset + delta

    @classmethod
    def merge_imports(cls, existing: List[str], required: List[str]) -> Tuple[List[str], List[str]]:
        """Union of existing and required imports.

        Existing declarations keep their order; required ones that are not
        already present are appended.

        Returns:
            (merged import lines, newly added import lines)
        """
        merged = list(existing)
        seen = {cls._import_key(statement) for statement in existing}
        added = []
        for statement in required:
            key = cls._import_key(statement)
            if key in seen:
                continue
            seen.add(key)
            merged.append(statement)
            added.append(statement)
        return merged, added

    def assemble(
        self,
        body: str,
        imports: List[str],
        new_blocks: List[str],
        marker_index: int = -1,
        newline: str = '\n'
    ) -> str:
        """Imports, body before the marker, new blocks, then the marker and what follows it.

        Args:
            body: File text with replacements applied
            imports: Merged import lines
            new_blocks: Rendered blocks to insert
            marker_index: Offset of the marker line in body, or -1
            newline: Line break used for the joins
        """
        marker_line, post_marker = None, ''
        if marker_index != -1:
            line_end = body.find('\n', marker_index)
            line_end = len(body) if line_end == -1 else line_end
            marker_line = body[marker_index:line_end]
            post_marker = body[line_end:]
            body = body[:marker_index]

        pre_marker = LEADING_BLANK_LINES.sub('', self._locator.remove_imports(body)).rstrip()

        sections = [newline.join(imports), pre_marker] + new_blocks
        text = (newline * 2).join(section for section in sections if section)

        if marker_line is not None:
            marker_text = f"{marker_line}{post_marker}"
            text = f"{text}{newline * 2}{marker_text}" if text else marker_text

        return text.rstrip() + newline

    @staticmethod
    def _import_key(statement: str) -> str:
        """Normalise quotes, spacing and the trailing semicolon of an import."""
        key = statement.strip().rstrip(';').replace('"', "'")
        key = re.sub(r'\s*([{},])\s*', r' \1 ', key)
        return ' '.join(key.split())
