"""
Scaffold profile data classes.

A profile is the named bundle of rendering rules for one application under
test: the imports generated blocks need, the describe header, lifecycle
hooks, the test body layout and the timeout/retry policy.
"""
from dataclasses import dataclass, field
from string import Template
from typing import Any, Dict, List, Optional, Tuple
import yaml

from core.domain.errors import ConfigurationError

# Fixed rendering order of lifecycle hooks inside a describe block
HOOK_ORDER: Tuple[str, ...] = ('beforeAll', 'beforeEach', 'afterEach', 'afterAll')


def escape_js_string(text: str) -> str:
    """Escape text for use inside a single-quoted TypeScript string."""
    escaped = text.replace('\\', '\\\\').replace("'", "\\'")
    return escaped.replace('\r', ' ').replace('\n', ' ')


@dataclass(frozen=True)
class ImportStatement:
    """One import declaration required by generated blocks."""
    module: str
    names: Tuple[str, ...] = ()

    def render(self) -> str:
        """Render as a single-line TypeScript import."""
        if not self.names:
            return f"import '{self.module}';"
        return f"import {{ {', '.join(self.names)} }} from '{self.module}';"


@dataclass(frozen=True)
class LifecycleHook:
    """A test.beforeAll / beforeEach / afterEach / afterAll hook."""
    name: str
    fixtures: str = ""
    body: Tuple[str, ...] = ()

    def render(self) -> List[str]:
        """Render hook lines, unindented."""
        params = f"({self.fixtures})" if self.fixtures else "()"
        lines = [f"test.{self.name}(async {params} => {{"]
        lines.extend(f"  {line}" if line else "" for line in self.body)
        lines.append("});")
        return lines


@dataclass(frozen=True)
class JiraMapping:
    """How Jira fields map onto the generated test."""
    test_title_from_issue: bool = True  # test name = issue title, else "Verify <key>"
    steps_from_jira: bool = True  # one step per AC line, else a single placeholder


@dataclass(frozen=True)
class ScaffoldProfile:
    """Rendering rules and policy values for one target application."""
    name: str
    imports: Tuple[ImportStatement, ...] = ()
    hooks: Tuple[LifecycleHook, ...] = ()
    describe_template: str = "test.describe('$title @$key', () => {"
    test_fixtures: str = "{ page }"
    step_template: str = "await test.step('Step $number: $text', async () => {});"
    placeholder_step: str = "expect(true).toBe(true);"
    timeout: int = 20000
    retries: int = 2
    jira_mapping: JiraMapping = field(default_factory=JiraMapping)

    def __post_init__(self):
        """Validate profile after initialization."""
        if not self.name:
            raise ConfigurationError("Profile name cannot be empty")
        for hook in self.hooks:
            if hook.name not in HOOK_ORDER:
                raise ConfigurationError(
                    f"Profile '{self.name}': unknown lifecycle hook '{hook.name}'. "
                    f"Supported hooks: {', '.join(HOOK_ORDER)}"
                )
        if self.timeout < 0 or self.retries < 0:
            raise ConfigurationError(f"Profile '{self.name}': timeout and retries must be >= 0")

    def describe_header(self, title: str, key: str) -> str:
        """Render the describe header line embedding title and key."""
        try:
            return Template(self.describe_template).substitute(title=escape_js_string(title), key=key)
        except (KeyError, ValueError) as e:
            raise ConfigurationError(f"Profile '{self.name}': bad describe_template: {e}") from e

    def configure_line(self) -> str:
        """Render the timeout/retry policy statement."""
        return f"test.describe.configure({{ timeout: {self.timeout}, retries: {self.retries} }});"

    def get_hook(self, name: str) -> Optional[LifecycleHook]:
        """Get a lifecycle hook by name, or None if the profile omits it."""
        for hook in self.hooks:
            if hook.name == name:
                return hook
        return None

    def ordered_hooks(self) -> List[LifecycleHook]:
        """Hooks in the fixed beforeAll, beforeEach, afterEach, afterAll order."""
        return [hook for hook in (self.get_hook(name) for name in HOOK_ORDER) if hook]

    def render_step(self, number: int, text: str) -> str:
        """Render one numbered step placeholder."""
        try:
            return Template(self.step_template).substitute(number=number, text=escape_js_string(text))
        except (KeyError, ValueError) as e:
            raise ConfigurationError(f"Profile '{self.name}': bad step_template: {e}") from e

    def test_block(self, test_name: str, steps: List[str]) -> str:
        """Render the test body for a name and ordered list of step statements."""
        params = f"({self.test_fixtures})" if self.test_fixtures else "()"
        lines = [f"test('{escape_js_string(test_name)}', async {params} => {{"]
        lines.extend(f"  {step}" for step in steps)
        lines.append("});")
        return '\n'.join(lines)

    @property
    def required_imports(self) -> List[str]:
        """Rendered import declarations, in profile order."""
        return [statement.render() for statement in self.imports]

    @classmethod
    def load_from_yaml(cls, yaml_path: str) -> 'ScaffoldProfile':
        """Load a profile from a YAML file."""
        with open(yaml_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ConfigurationError(f"Profile file {yaml_path} must contain a mapping")
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScaffoldProfile':
        """Create ScaffoldProfile from a dictionary."""
        name = data.get('name')
        if not name:
            raise ConfigurationError("Profile definition is missing 'name'")

        imports = tuple(
            ImportStatement(module=item['module'], names=tuple(item.get('names', [])))
            for item in data.get('imports', [])
        )

        hooks = tuple(
            LifecycleHook(
                name=hook_name,
                fixtures=(hook_data or {}).get('fixtures', ''),
                body=tuple((hook_data or {}).get('body', [])),
            )
            for hook_name, hook_data in (data.get('hooks') or {}).items()
        )

        mapping_data = data.get('jira_mapping', {})
        jira_mapping = JiraMapping(
            test_title_from_issue=mapping_data.get('test_title_from_issue', True),
            steps_from_jira=mapping_data.get('steps_from_jira', True),
        )

        defaults = cls(name=name)
        return cls(
            name=name,
            imports=imports,
            hooks=hooks,
            describe_template=data.get('describe_template', defaults.describe_template),
            test_fixtures=data.get('test_fixtures', defaults.test_fixtures),
            step_template=data.get('step_template', defaults.step_template),
            placeholder_step=data.get('placeholder_step', defaults.placeholder_step),
            timeout=int(data.get('timeout', defaults.timeout)),
            retries=int(data.get('retries', defaults.retries)),
            jira_mapping=jira_mapping,
        )


def default_hooks(setup_function: str) -> Tuple[LifecycleHook, ...]:
    """Standard demo hooks; beforeEach calls the application's setup helper."""
    return (
        LifecycleHook('beforeAll', '{ browser }', ("console.log('Initializing test suite...');",)),
        LifecycleHook('beforeEach', '{ page }', (f"await {setup_function}(page);",)),
        LifecycleHook('afterEach', '{ page }', ("console.log('Resetting test state...');",)),
        LifecycleHook('afterAll', '', ("console.log('Cleaning up test suite...');",)),
    )


# Built-in profile for the CRM demo application
def get_crm_profile() -> ScaffoldProfile:
    """Get the built-in CRM profile."""
    return ScaffoldProfile(
        name="CRM",
        imports=(
            ImportStatement('@playwright/test', ('test', 'expect')),
            ImportStatement('../utils/DemoSetup', ('setupDemo',)),
        ),
        hooks=default_hooks('setupDemo'),
        timeout=20000,
        retries=2,
    )
