"""
Rules - project configuration loaded from rules.yaml.
"""

from contentdesk.rules.adapters import RulesAdapter
from contentdesk.rules.loader import load_rules
from contentdesk.rules.models import EditorRules, ParserRules, ProjectRules, Rules, SecurityRules

__all__ = [
    "EditorRules",
    "ParserRules",
    "ProjectRules",
    "Rules",
    "RulesAdapter",
    "SecurityRules",
    "load_rules",
]
