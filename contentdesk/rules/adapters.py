"""
Rules adapters - expose loaded rules through component ports.
"""

from __future__ import annotations

from contentdesk.rules.models import Rules


class RulesAdapter:
    """Adapter from validated Rules to the richtext RulesPort."""

    def __init__(self, rules: Rules) -> None:
        self._rules = rules

    def get_forbidden_protocols(self) -> frozenset[str]:
        return frozenset(p.lower() for p in self._rules.security.forbidden_url_protocols)

    def get_drop_tags(self) -> frozenset[str]:
        return frozenset(t.lower() for t in self._rules.editor.parser.drop_tags)

    def get_tab_text(self) -> str:
        return self._rules.editor.tab_text

    def get_max_html_bytes(self) -> int:
        return self._rules.editor.max_html_bytes
