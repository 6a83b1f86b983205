"""
Environment Configuration Module

Loads environment variables (and an optional .env file) into typed settings
for the acceptance criteria sync. Settings are built once per run and passed
to the components that need them.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

from dotenv import load_dotenv

from core.domain.errors import ConfigurationError

LOG_LEVELS = ('info', 'debug', 'error')
DEFAULT_PROFILE = "CRM"
DEFAULT_TEST_FILE = "e2e/crm.spec.ts"


def _get_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    value = env.get(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _get_int(env: Mapping[str, str], name: str, default: int) -> int:
    value = env.get(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got: {value!r}")


@dataclass
class JiraSettings:
    """Jira connection settings."""
    base_url: str = ""
    username: str = ""
    api_token: str = ""
    is_cloud: bool = True
    verify_ssl: bool = True
    ac_field: Optional[str] = None
    timeout: int = 30
    max_retries: int = 3

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> 'JiraSettings':
        """Create settings from environment variables."""
        env = os.environ if env is None else env
        return cls(
            base_url=env.get("JIRA_BASE_URL", "").strip(),
            username=env.get("JIRA_USERNAME", "").strip(),
            api_token=env.get("JIRA_API_TOKEN", "").strip(),
            is_cloud=_get_bool(env, "JIRA_IS_CLOUD", True),
            verify_ssl=_get_bool(env, "JIRA_VERIFY_SSL", True),
            ac_field=env.get("JIRA_AC_FIELD") or None,
            timeout=_get_int(env, "JIRA_TIMEOUT", 30),
            max_retries=_get_int(env, "JIRA_MAX_RETRIES", 3),
        )

    def validate(self) -> None:
        """Raise ConfigurationError naming every missing credential."""
        missing = [
            name for name, value in (
                ("JIRA_BASE_URL", self.base_url),
                ("JIRA_USERNAME", self.username),
                ("JIRA_API_TOKEN", self.api_token),
            ) if not value
        ]
        if missing:
            raise ConfigurationError(f"Missing Jira settings: {', '.join(missing)}")


@dataclass
class LoggingSettings:
    """Console and log file settings."""
    level: str = "info"
    logs_dir: str = "logs"
    retention_days: int = 90

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, level: Optional[str] = None) -> 'LoggingSettings':
        env = os.environ if env is None else env
        level = (level or env.get("LOG_LEVEL") or "info").lower()
        if level not in LOG_LEVELS:
            raise ConfigurationError(f"Log level must be one of {', '.join(LOG_LEVELS)}, got: {level!r}")
        return cls(
            level=level,
            logs_dir=env.get("LOGS_DIR") or "logs",
            retention_days=_get_int(env, "LOG_RETENTION_DAYS", 90),
        )


@dataclass
class AppSettings:
    """Everything one sync run needs."""
    jira: JiraSettings = field(default_factory=JiraSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    projects: List[str] = field(default_factory=list)
    boards: List[str] = field(default_factory=list)
    profile: str = DEFAULT_PROFILE
    test_file: str = DEFAULT_TEST_FILE
    profiles_dirs: List[str] = field(default_factory=list)
    dry_run: bool = False
    allow_duplicates: bool = False

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, **overrides) -> 'AppSettings':
        """Create settings from environment variables, then apply overrides.

        Args:
            env: Mapping to read instead of os.environ
            **overrides: Field values taking precedence over the environment

        Returns:
            AppSettings instance
        """
        env = os.environ if env is None else env
        level = overrides.pop('log_level', None)
        settings = cls(
            jira=JiraSettings.from_env(env),
            logging=LoggingSettings.from_env(env, level=level),
            profile=env.get("DEFAULT_PROFILE") or DEFAULT_PROFILE,
            test_file=env.get("TEST_FILE") or DEFAULT_TEST_FILE,
        )
        for name, value in overrides.items():
            if not hasattr(settings, name):
                raise ConfigurationError(f"Unknown setting: {name}")
            if value is not None:
                setattr(settings, name, value)
        return settings

    @classmethod
    def from_args(cls, args, env_file: Optional[str] = None) -> 'AppSettings':
        """Create settings from parsed command line arguments.

        Loads the .env file (without overriding variables already set) before
        reading the environment. Command line values win over the environment.
        """
        load_dotenv(dotenv_path=env_file or Path.cwd() / '.env', override=False)

        return cls.from_env(
            projects=_split_values(args.project),
            boards=_split_values(args.board),
            profile=args.profile,
            test_file=args.test_file,
            profiles_dirs=list(args.profiles_dir or []),
            dry_run=args.dry_run,
            allow_duplicates=args.allow_duplicates,
            log_level=args.log_level,
        )


def _split_values(values: Optional[List[str]]) -> List[str]:
    """Flatten repeated and comma separated option values, dropping blanks."""
    result = []
    for value in values or []:
        result.extend(part.strip() for part in str(value).split(',') if part.strip())
    return result
