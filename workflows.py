#!/usr/bin/env python3
"""
Acceptance Criteria Sync Workflow

Fetches Jira issues for the selected projects/boards and merges their
acceptance criteria into a Playwright spec file as generated test
scaffolding. Re-running with the same issues leaves the file unchanged;
hand-written code and edits outside generated blocks are preserved.

Usage:
    # Sync a project into the default test file with the CRM profile
    python3 workflows.py --project CRM

    # Several projects on a board, previewing the changes only
    python3 workflows.py -p CRM IMS -b 42 --dry-run --log-level debug

    # Another application profile and target file
    python3 workflows.py -p CLIQ --profile CLIQ --test-file e2e/cliq.spec.ts

    # List available scaffold profiles
    python3 workflows.py --list-profiles
"""
import argparse
import difflib
import logging
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from core.application.use_cases import IssueCollector
from core.config import AppSettings, LOG_LEVELS
from core.domain.errors import ConfigurationError, ProfileNotFoundError, SpecFileWriteError
from core.domain.merge_result import MergeResult
from core.interfaces.repository import IIssueSource, ISpecFileStore
from core.services import AcceptanceCriteriaFormatter, MergeEngine, TextAnchorLocator
from infrastructure.files import SpecFileRepository
from infrastructure.jira import JiraIssueSource
from infrastructure.logs import configure_logging
from profiles import ProfileManager

logger = logging.getLogger(__name__)


class WorkflowStatus(Enum):
    SUCCESS = "success"
    NO_OP = "no_op"
    FAILED = "failed"


@dataclass
class WorkflowResult:
    """Result of workflow execution."""
    status: WorkflowStatus
    message: str
    data: Dict[str, Any] = None

    def __post_init__(self):
        if self.data is None:
            self.data = {}

    @property
    def exit_code(self) -> int:
        return 1 if self.status == WorkflowStatus.FAILED else 0


class SyncAcceptanceCriteriaUseCase:
    """
    Sync acceptance criteria from the issue source into one spec file.

    Steps: resolve profile, collect issues, read and scan the file, merge,
    then either report (dry run) or write the result atomically.
    """

    def __init__(
        self,
        source: IIssueSource,
        store: ISpecFileStore,
        profiles: ProfileManager,
        locator: Optional[TextAnchorLocator] = None
    ):
        self.source = source
        self.store = store
        self.profiles = profiles
        self.locator = locator or TextAnchorLocator()
        self.engine = MergeEngine(AcceptanceCriteriaFormatter(profiles), locator=self.locator)

    def execute(self, settings: AppSettings) -> WorkflowResult:
        """Run one sync.

        Args:
            settings: Run settings (projects, boards, profile, test file, flags)

        Returns:
            WorkflowResult; data carries the per-key merge decisions
        """
        try:
            profile = self.profiles.get_profile(settings.profile)
        except ProfileNotFoundError as e:
            return WorkflowResult(status=WorkflowStatus.FAILED, message=str(e))

        logger.info(
            "Starting AC extraction for projects: %s on boards: %s",
            ', '.join(settings.projects) or '-', ', '.join(settings.boards) or '-'
        )
        logger.info("Dry Run Mode: %s", "Enabled" if settings.dry_run else "Disabled")
        logger.info("Profile: %s, test file: %s", profile.name, settings.test_file)

        issues = IssueCollector(self.source).collect(settings.projects, settings.boards)
        if not issues:
            logger.info("No Jira issues with AC found. Exiting.")
            return WorkflowResult(status=WorkflowStatus.NO_OP, message="No Jira issues with AC found")

        content, exists = self.store.read(settings.test_file)
        file_state = self.locator.scan(content, exists=exists)
        result = self.engine.merge(file_state, issues, profile, settings.allow_duplicates)
        data = self._result_data(result, settings.test_file)

        logger.info("Merge result: %s", result.summary(), extra={'test_file': settings.test_file})
        for key in result.skipped_duplicates:
            logger.info("Skipped duplicate AC for %s", key)

        if settings.dry_run:
            self._log_diff(result, settings.test_file)
            return WorkflowResult(
                status=WorkflowStatus.SUCCESS,
                message=f"Dry run: {result.summary()}; {settings.test_file} not modified",
                data=data
            )

        if not result.changed and exists:
            return WorkflowResult(
                status=WorkflowStatus.SUCCESS,
                message=f"{settings.test_file} is up to date ({result.summary()})",
                data=data
            )

        try:
            self.store.write(settings.test_file, result.content)
        except SpecFileWriteError as e:
            return WorkflowResult(status=WorkflowStatus.FAILED, message=str(e), data=data)

        data['written'] = True
        return WorkflowResult(
            status=WorkflowStatus.SUCCESS,
            message=f"AC extraction complete: {result.summary()}",
            data=data
        )

    @staticmethod
    def _result_data(result: MergeResult, test_file: str) -> Dict[str, Any]:
        return {
            'test_file': test_file,
            'added': list(result.added),
            'updated': list(result.updated),
            'unchanged': list(result.unchanged),
            'skipped_duplicates': list(result.skipped_duplicates),
            'imports_added': list(result.imports_added),
            'changed': result.changed,
            'written': False,
        }

    @staticmethod
    def _log_diff(result: MergeResult, test_file: str) -> None:
        if not result.changed:
            logger.info("Dry run: no changes for %s", test_file)
            return
        diff = difflib.unified_diff(
            result.original.splitlines(keepends=True),
            result.content.splitlines(keepends=True),
            fromfile=test_file,
            tofile=f"{test_file} (dry run)",
        )
        logger.debug("Dry run diff:\n%s", ''.join(diff))


def build_use_case(settings: AppSettings) -> SyncAcceptanceCriteriaUseCase:
    """Wire the Jira source, file store and profile registry.

    Raises:
        ConfigurationError: If Jira credentials are missing
    """
    return SyncAcceptanceCriteriaUseCase(
        source=JiraIssueSource.from_settings(settings.jira),
        store=SpecFileRepository(),
        profiles=ProfileManager(extra_dirs=settings.profiles_dirs),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Sync Jira acceptance criteria into Playwright test scaffolding",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  JIRA_BASE_URL, JIRA_USERNAME, JIRA_API_TOKEN   Jira connection (required)
  JIRA_IS_CLOUD, JIRA_VERIFY_SSL, JIRA_AC_FIELD  Jira options
  TEST_FILE, DEFAULT_PROFILE                     Defaults for --test-file/--profile
  LOGS_DIR, LOG_RETENTION_DAYS                   Run log location and retention

Examples:
  python3 workflows.py --project CRM
  python3 workflows.py -p CRM IMS -b 42 --dry-run --log-level debug
        """
    )

    parser.add_argument('--project', '-p', nargs='+', action='extend',
                        help='Jira project key(s); repeatable or comma separated')
    parser.add_argument('--board', '-b', nargs='+', action='extend',
                        help='Jira board ID(s); repeatable or comma separated')
    parser.add_argument('--dry-run', '-d', action='store_true',
                        help='Preview changes without modifying the test file')
    parser.add_argument('--allow-duplicates', '--dup', action='store_true',
                        help='Insert new blocks even if identical text already exists')
    parser.add_argument('--log-level', '-l', choices=LOG_LEVELS, default=None,
                        help='Console log level (default: info)')
    parser.add_argument('--profile', default=None,
                        help='Application scaffold profile (default: CRM)')
    parser.add_argument('--test-file', default=None,
                        help='Playwright spec file to update')
    parser.add_argument('--profiles-dir', action='append',
                        help='Extra directory of YAML scaffold profiles; repeatable')
    parser.add_argument('--env-file', default=None,
                        help='Path of the .env file (default: ./.env)')
    parser.add_argument('--list-profiles', action='store_true',
                        help='List available scaffold profiles and exit')
    return parser


def list_profiles(settings: AppSettings) -> List[str]:
    return ProfileManager(extra_dirs=settings.profiles_dirs).list_profiles()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = AppSettings.from_args(args, env_file=args.env_file)
    except ConfigurationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if args.list_profiles:
        for name in list_profiles(settings):
            print(name)
        return 0

    log_path = configure_logging(settings.logging)
    logger.debug("Writing run log to %s", log_path)

    try:
        result = build_use_case(settings).execute(settings)
    except ConfigurationError as e:
        result = WorkflowResult(status=WorkflowStatus.FAILED, message=str(e))
    except Exception as e:
        logger.exception("Unhandled error")
        print(f"ERROR: Unhandled error: {e}", file=sys.stderr)
        return 1

    if result.status == WorkflowStatus.FAILED:
        logger.error(result.message)
        print(f"ERROR: {result.message}", file=sys.stderr)
    else:
        logger.info(result.message)
    return result.exit_code


if __name__ == '__main__':
    sys.exit(main())
