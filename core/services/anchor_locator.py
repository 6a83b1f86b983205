"""
Text Anchor Locator.

Finds the anchors the merge engine works with in raw spec file text:
generated describe blocks keyed by issue key, import declarations, and the
@TESTGEN insertion marker. Matching is pattern and bracket-depth based, not
a TypeScript parse; anything that does not fit a pattern is left alone.
"""
import logging
import re
from typing import Dict, List, Optional, Tuple

from core.domain.file_state import BlockSpan, FileState

logger = logging.getLogger(__name__)

MARKER_TOKEN = "@TESTGEN"
MARKER_LINE = "// @TESTGEN - for AI generated scaffolding"

# Column-zero code line (not a comment) embedding a quoted "<title> @<KEY>" and ending with an opening brace
HEADER_PATTERN = re.compile(
    r"^(?![\s*]|//|/\*)[^\n]*?(?P<quote>['\"`])"
    r"(?P<title>(?:\\.|(?!(?P=quote))[^\\\n])*?)"
    r" @(?P<key>[A-Za-z][A-Za-z0-9_]*-\d+)(?P=quote)"
    r"[^\n]*\{[ \t]*\r?$",
    re.MULTILINE,
)

# Closing brace at column zero, optionally followed by ")" and ";"
CLOSER_PATTERN = re.compile(r"\}\)?;?(?=[ \t]*\r?(?:\n|$))")

# Single-line import declarations: import x from 'y'; / import 'y';
IMPORT_PATTERN = re.compile(
    r"^import\s+(?:[^'\"\n;]+?\s+from\s+)?['\"][^'\"\n]+['\"][ \t]*;?[ \t]*\r?$",
    re.MULTILINE,
)

MARKER_PATTERN = re.compile(
    r"^[ \t]*//[ \t]*" + re.escape(MARKER_TOKEN) + r"\b[^\n]*$",
    re.MULTILINE,
)

STRING_QUOTES = ("'", '"', '`')


class TextAnchorLocator:
    """Scans spec file text for generated blocks, imports and the marker.

    None of the methods mutate their input or raise on unexpected text.
    """

    def scan(self, content: str, exists: bool = True) -> FileState:
        """Build the FileState for a file's content."""
        blocks = self.find_blocks(content)
        imports = self.find_imports(content)
        marker_index = self.find_marker(content, blocks)

        logger.debug(
            "Scanned spec file: %d generated block(s), %d import(s), marker %s",
            len(blocks), len(imports),
            f"at index {marker_index}" if marker_index != -1 else "not found",
        )
        return FileState(
            content=content,
            existing_blocks=blocks,
            existing_imports=imports,
            marker_index=marker_index,
            exists=exists,
        )

    def find_blocks(self, content: str) -> Dict[str, BlockSpan]:
        """Map issue key -> verbatim span of its top-level generated block.

        Headers inside an already matched span are nested and not indexed.
        If a key appears twice, the last matched block wins.
        """
        blocks: Dict[str, BlockSpan] = {}
        last_end = 0

        for match in HEADER_PATTERN.finditer(content):
            if match.start() < last_end:
                continue

            key = match.group('key')
            open_brace = content.rfind('{', match.start(), match.end())
            end = self._find_block_end(content, open_brace)
            if end == -1:
                logger.debug("Block for %s at index %d has no closing marker; left untouched", key, match.start())
                continue

            if key in blocks:
                logger.warning("Issue %s has more than one generated block; using the last one", key)

            blocks[key] = BlockSpan(
                key=key,
                title=re.sub(r"\\(.)", r"\1", match.group('title')),
                start=match.start(),
                end=end,
                text=content[match.start():end],
            )
            last_end = end

        return blocks

    def find_imports(self, content: str) -> List[str]:
        """Single-line import declarations of the leading import region, verbatim, unique, in file order."""
        imports: List[str] = []
        for start, end in self.import_lines(content):
            statement = content[start:end].rstrip()
            if statement not in imports:
                imports.append(statement)
        return imports

    def find_marker(self, content: str, blocks: Optional[Dict[str, BlockSpan]] = None) -> int:
        """Offset of the first @TESTGEN marker line outside generated blocks, or -1."""
        spans = [(span.start, span.end) for span in (blocks or {}).values()]
        for match in MARKER_PATTERN.finditer(content):
            if any(start <= match.start() < end for start, end in spans):
                continue
            return match.start()
        return -1

    def remove_imports(self, content: str) -> str:
        """Content with the import lines of the leading import region removed."""
        pieces = []
        last = 0
        for start, end in self.import_lines(content):
            pieces.append(content[last:start])
            last = end + 1 if end < len(content) else end
        pieces.append(content[last:])
        return ''.join(pieces)

    def import_lines(self, content: str) -> List[Tuple[int, int]]:
        """(start, end) offsets of the import lines at the top of the file.

        The region holds blank lines, comments and single-line imports and
        ends at the first other line or at the @TESTGEN marker. Offsets
        exclude the line break.
        """
        spans: List[Tuple[int, int]] = []
        pos = 0
        length = len(content)

        while pos < length:
            newline = content.find('\n', pos)
            line_end = length if newline == -1 else newline
            line = content[pos:line_end]
            stripped = line.strip()
            next_pos = line_end + 1

            if MARKER_PATTERN.fullmatch(line):
                break
            if stripped.startswith('/*'):
                close = content.find('*/', pos + line.index('/*') + 2)
                if close == -1:
                    break
                after = content.find('\n', close)
                after = length if after == -1 else after
                if content[close + 2:after].strip():
                    break
                next_pos = after + 1
            elif IMPORT_PATTERN.fullmatch(line):
                spans.append((pos, line_end))
            elif stripped and not stripped.startswith('//'):
                break

            pos = next_pos

        return spans

    def _find_block_end(self, content: str, open_brace: int) -> int:
        """End offset of the block opened at open_brace, or -1 if it never closes cleanly."""
        depth = 0
        i = open_brace
        length = len(content)

        while i < length:
            char = content[i]

            if content.startswith('//', i):
                newline = content.find('\n', i)
                i = length if newline == -1 else newline
                continue
            if content.startswith('/*', i):
                close = content.find('*/', i + 2)
                if close == -1:
                    return -1
                i = close + 2
                continue
            if char in STRING_QUOTES:
                i = self._skip_string(content, i)
                if i == -1:
                    return -1
                continue

            if char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
                if depth == 0:
                    line_start = content.rfind('\n', 0, i) + 1
                    if line_start != i:
                        return -1
                    closer = CLOSER_PATTERN.match(content, i)
                    return closer.end() if closer else -1
            i += 1

        return -1

    @staticmethod
    def _skip_string(content: str, start: int) -> int:
        """Index just past the string literal starting at start, or -1."""
        quote = content[start]
        i = start + 1
        length = len(content)
        while i < length:
            char = content[i]
            if char == '\\':
                i += 2
                continue
            if char == quote:
                return i + 1
            if char == '\n' and quote != '`':
                # Unterminated single-line string: resume at the line break
                return i
            i += 1
        return -1
