"""Improvement suggestions derived from the tool and package inventory."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from .inventory import Package, Tool


class SuggestionKind(str, Enum):
    INSTALL = "install"
    UPDATE = "update"
    REMOVE = "remove"
    CONFIGURE = "configure"
    OPTIMIZE = "optimize"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class Suggestion:
    kind: SuggestionKind
    title: str
    description: str
    priority: Priority
    command: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind.value
        data["priority"] = self.priority.value
        return data


PRIMARY_PACKAGE_MANAGER = "node"
FASTER_PACKAGE_MANAGERS = ("yarn", "pnpm")
CONTAINER_TOOLS = ("docker",)


def generate_suggestions(tools: Sequence[Tool], packages: Sequence[Package]) -> List[Suggestion]:
    """Suggest optional improvements. Never consults detected issues."""
    installed = {tool.name for tool in tools if tool.is_installed}
    suggestions: List[Suggestion] = []

    if PRIMARY_PACKAGE_MANAGER in installed and not installed.intersection(FASTER_PACKAGE_MANAGERS):
        suggestions.append(
            Suggestion(
                kind=SuggestionKind.INSTALL,
                title="考虑安装更快的包管理器",
                description="Yarn 或 pnpm 比 npm 更快，推荐尝试",
                command="npm install -g yarn",
                priority=Priority.LOW,
            )
        )

    if not installed.intersection(CONTAINER_TOOLS):
        suggestions.append(
            Suggestion(
                kind=SuggestionKind.INSTALL,
                title="安装 Docker",
                description="Docker 是现代开发的必备工具，用于容器化应用",
                priority=Priority.MEDIUM,
            )
        )

    return suggestions
