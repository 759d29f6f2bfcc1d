"""Template validation rules."""

from .import_rules import ImportRuleChecker
from .name_rules import NameRuleChecker
from .prop_rules import PropRuleChecker
from .type_rules import TypeRuleChecker

__all__ = [
    "ImportRuleChecker",
    "NameRuleChecker",
    "PropRuleChecker",
    "TypeRuleChecker",
]
