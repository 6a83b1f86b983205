"""
Acceptance Criteria Formatter.

Renders one Jira issue into the exact text of its generated Playwright
describe block. Output is a pure function of (issue, profile): the merge
engine and the duplicate guard both rely on byte-identical re-renders.
"""
from typing import List

from core.domain.issue import Issue
from profiles.profile_config import ScaffoldProfile
from profiles.profile_manager import ProfileManager

INDENT = "  "


class AcceptanceCriteriaFormatter:
    """Formats issue acceptance criteria into a structured Playwright block.

    Layout, top to bottom:
        describe header
        doc comment with one "- [ ]" checklist line per AC line
        describe.configure with the profile's timeout and retries
        lifecycle hooks (beforeAll, beforeEach, afterEach, afterAll)
        one test with a numbered step per non-empty AC line
        closing "});" at column zero
    """

    def __init__(self, profiles: ProfileManager):
        self._profiles = profiles

    def format(self, issue: Issue, profile_name: str) -> str:
        """Render an issue with a registered profile.

        Raises:
            ProfileNotFoundError: If profile_name is not registered.
        """
        return self.render(issue, self._profiles.get_profile(profile_name))

    def render(self, issue: Issue, profile: ScaffoldProfile) -> str:
        """Render an issue with an already resolved profile."""
        sections: List[List[str]] = [
            self._doc_comment(issue),
            [profile.configure_line()],
        ]
        sections.extend(hook.render() for hook in profile.ordered_hooks())
        sections.append(profile.test_block(self._test_name(issue, profile), self._steps(issue, profile)).split('\n'))

        body: List[str] = []
        for section in sections:
            if body:
                body.append("")
            body.extend(self._indent(line) for line in section)

        lines = [profile.describe_header(issue.title, issue.key)]
        lines.extend(body)
        lines.append("});")
        return '\n'.join(lines)

    def _doc_comment(self, issue: Issue) -> List[str]:
        lines = ["/**", " * Acceptance Criteria:"]
        criteria = issue.acceptance_criteria.strip()
        for line in criteria.splitlines() if criteria else []:
            # "*/" would close the comment early
            item = line.strip().replace('*/', '*\\/')
            lines.append(f" * - [ ] {item}".rstrip())
        lines.append(" */")
        return lines

    @staticmethod
    def _test_name(issue: Issue, profile: ScaffoldProfile) -> str:
        if profile.jira_mapping.test_title_from_issue:
            return issue.title
        return f"Verify {issue.key}"

    @staticmethod
    def _steps(issue: Issue, profile: ScaffoldProfile) -> List[str]:
        if not profile.jira_mapping.steps_from_jira:
            return [profile.placeholder_step]
        return [
            profile.render_step(number, text)
            for number, text in enumerate(issue.criteria_lines, start=1)
        ]

    @staticmethod
    def _indent(line: str) -> str:
        return f"{INDENT}{line}" if line else line
