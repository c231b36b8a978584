"""Coordinate local rules, suggestions and the optional advisory call into one report."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Dict, List, Optional, Sequence

from .advisory import (
    AdvisoryActive,
    AdvisoryClient,
    AdvisoryConfig,
    AdvisoryState,
    Transport,
    advisory_state,
)
from .inventory import EnvironmentVariable, Inventory, Package, Service, Tool
from .rules import Issue, Severity, evaluate_rules
from .suggestions import Suggestion, generate_suggestions

logger = logging.getLogger(__name__)


@dataclass
class AnalysisReport:
    summary: str
    issues: List[Issue] = field(default_factory=list)
    suggestions: List[Suggestion] = field(default_factory=list)
    insights: List[str] = field(default_factory=list)

    def counts(self) -> Dict[Severity, int]:
        counts = {severity: 0 for severity in Severity}
        for issue in self.issues:
            counts[issue.severity] += 1
        return counts

    def sorted_issues(self) -> List[Issue]:
        """Issues ordered by urgency, emission order kept within a severity."""
        return sorted(self.issues, key=lambda issue: issue.severity.rank)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary,
            "issues": [issue.to_dict() for issue in self.issues],
            "suggestions": [suggestion.to_dict() for suggestion in self.suggestions],
            "insights": list(self.insights),
        }


def summarize(tools: Sequence[Tool], issues: Sequence[Issue]) -> str:
    installed = sum(1 for tool in tools if tool.is_installed)
    critical = sum(1 for issue in issues if issue.severity is Severity.CRITICAL)
    warnings = sum(1 for issue in issues if issue.severity is Severity.WARNING)

    summary = f"检测到 {installed} 个已安装的工具。"
    if critical > 0:
        summary += f" 发现 {critical} 个严重问题。"
    if warnings > 0:
        summary += f" 有 {warnings} 个警告。"
    if not issues:
        summary += " 环境状态良好！"
    return summary


class Analyzer:
    """Environment analysis engine.

    The advisory state is swapped as a whole by :meth:`reconfigure` and read once
    at the start of every :meth:`analyze` call.
    """

    def __init__(
        self, config: Optional[AdvisoryConfig] = None, transport: Optional[Transport] = None
    ) -> None:
        self._transport = transport
        self._state: AdvisoryState = advisory_state(config)

    @property
    def advisory(self) -> AdvisoryState:
        return self._state

    def reconfigure(self, config: Optional[AdvisoryConfig]) -> None:
        state = advisory_state(config)
        self._state = state
        active = isinstance(state, AdvisoryActive)
        logger.debug("Advisory reconfigured: %s", "active" if active else "disabled")

    async def analyze(
        self,
        tools: Sequence[Tool],
        packages: Sequence[Package],
        environment: Sequence[EnvironmentVariable],
        services: Sequence[Service],
    ) -> AnalysisReport:
        state = self._state
        inventory = Inventory(
            tools=list(tools),
            packages=list(packages),
            environment=list(environment),
            services=list(services),
        )

        issues = evaluate_rules(inventory)
        suggestions = generate_suggestions(inventory.tools, inventory.packages)
        summary = summarize(inventory.tools, issues)
        logger.debug("Local analysis: %d issue(s), %d suggestion(s)", len(issues), len(suggestions))

        insights: List[str] = []
        if isinstance(state, AdvisoryActive):
            client = AdvisoryClient(state.config, transport=self._transport)
            insights.append(await client.insight(inventory))

        return AnalysisReport(summary=summary, issues=issues, suggestions=suggestions, insights=insights)

    async def analyze_inventory(self, inventory: Inventory) -> AnalysisReport:
        return await self.analyze(
            inventory.tools, inventory.packages, inventory.environment, inventory.services
        )
