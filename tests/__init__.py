"""
Tests for the Jira acceptance criteria sync.

Test modules:
- unit/test_anchor_locator: block, import and marker detection
- unit/test_ac_formatter: block rendering
- unit/test_duplicate_guard: verbatim duplicate detection
- unit/test_merge_engine: idempotent merge behaviour
- unit/test_profiles: scaffold profiles and registry
- unit/test_spec_file_repository: reading and atomic writes
- unit/test_environment: settings from env and CLI
- unit/test_logger: structured log files and retention
- integration/test_jira_issue_source: Jira client and issue source (mocked HTTP)
- integration/test_sync_workflow: end-to-end sync against temporary files
"""
