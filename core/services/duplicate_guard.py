"""
Duplicate Guard - decides whether a rendered block is already present.
"""


class DuplicateGuard:
    """Verbatim-substring duplicate check for newly staged blocks.

    Only used for issues without an indexed block; updates of known keys
    never go through the guard.
    """

    @staticmethod
    def is_duplicate(candidate_text: str, current_text: str, allow_duplicates: bool) -> bool:
        """Return True if the trimmed candidate already occurs in current_text.

        Always False when duplicates are explicitly allowed.
        """
        if allow_duplicates:
            return False
        candidate = candidate_text.strip()
        if not candidate:
            return False
        return candidate in current_text
