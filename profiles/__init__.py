"""
Scaffold profiles: per-application rendering rules for generated tests.
"""
from .profile_config import (
    HOOK_ORDER,
    ImportStatement,
    LifecycleHook,
    JiraMapping,
    ScaffoldProfile,
    get_crm_profile,
)
from .profile_manager import ProfileManager

__all__ = [
    'HOOK_ORDER',
    'ImportStatement',
    'LifecycleHook',
    'JiraMapping',
    'ScaffoldProfile',
    'get_crm_profile',
    'ProfileManager',
]
