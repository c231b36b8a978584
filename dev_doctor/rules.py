"""Fixed diagnostic rules that turn an inventory into severity-ranked issues."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
import logging
import os
import re
import sys
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .inventory import EnvironmentVariable, Inventory, Service, Tool, index_tools

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Lower is more urgent."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.CRITICAL: 0, Severity.WARNING: 1, Severity.INFO: 2}


class Category(str, Enum):
    VERSION = "version"
    CONFLICT = "conflict"
    SECURITY = "security"
    PERFORMANCE = "performance"
    CONFIGURATION = "configuration"


@dataclass(frozen=True)
class Issue:
    severity: Severity
    category: Category
    title: str
    description: str
    affected_tools: Optional[Tuple[str, ...]] = None
    solution: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["severity"] = self.severity.value
        data["category"] = self.category.value
        data["affected_tools"] = list(self.affected_tools) if self.affected_tools is not None else None
        return data


@dataclass(frozen=True)
class VersionPolicy:
    threshold: int
    title: str
    description: str
    solution: str


# Tools whose major version must reach ``threshold``.
VERSION_FLOORS: Dict[str, VersionPolicy] = {
    "node": VersionPolicy(
        threshold=18,
        title="Node.js 版本过旧",
        description="当前版本 {version}，建议升级到 Node.js 18 LTS 或更高版本以获得更好的性能和安全性。",
        solution="访问 https://nodejs.org 下载最新 LTS 版本",
    ),
}

# Tools whose major version below ``threshold`` is no longer maintained upstream.
END_OF_LIFE: Dict[str, VersionPolicy] = {
    "python": VersionPolicy(
        threshold=3,
        title="Python 2 已停止支持",
        description="当前版本 {version}，Python 2 已于 2020 年停止维护，强烈建议升级到 Python 3。",
        solution="访问 https://www.python.org 下载 Python 3",
    ),
}

ESSENTIAL_TOOLS: Tuple[str, ...] = ("node", "npm", "git")

INSTALL_COMMANDS: Dict[Tuple[str, str], str] = {
    ("git", "win32"): "访问 https://git-scm.com 下载安装",
    ("git", "darwin"): "brew install git",
    ("git", "linux"): "sudo apt install git",
    ("node", "win32"): "访问 https://nodejs.org 下载安装",
    ("node", "darwin"): "brew install node",
    ("node", "linux"): "sudo apt install nodejs npm",
    ("npm", "win32"): "访问 https://nodejs.org 下载安装（npm 随 Node.js 一起安装）",
    ("npm", "darwin"): "brew install node",
    ("npm", "linux"): "sudo apt install npm",
    ("docker", "win32"): "访问 https://docker.com 下载 Docker Desktop",
    ("docker", "darwin"): "brew install --cask docker",
    ("docker", "linux"): "sudo apt install docker.io",
}

PATH_KEY = "PATH"

_LEADING_DIGITS = re.compile(r"\d+")


def host_platform() -> str:
    if sys.platform.startswith("linux"):
        return "linux"
    return sys.platform


def install_command(tool_name: str, platform: Optional[str] = None) -> str:
    platform = platform or host_platform()
    return INSTALL_COMMANDS.get((tool_name, platform), f"请访问 {tool_name} 官网下载安装")


def parse_major_version(version: str) -> Optional[int]:
    """Return the leading number of the first dot-separated component of ``version``.

    A single leading ``v`` is accepted (``v18.2.0`` -> 18) and trailing text is
    ignored (``20-nightly`` -> 20). A component without leading digits yields ``None``.
    """
    head = version.strip().split(".", 1)[0]
    if head[:1] in ("v", "V"):
        head = head[1:]
    match = _LEADING_DIGITS.match(head)
    if match is None:
        return None
    return int(match.group())


# ---------------------------------------------------------------------------
# Tool rules
# ---------------------------------------------------------------------------


def check_version_floors(
    tools: Sequence[Tool], policies: Mapping[str, VersionPolicy] = VERSION_FLOORS
) -> List[Issue]:
    issues: List[Issue] = []
    index = index_tools(tools)
    for name, policy in policies.items():
        tool = index.get(name)
        if tool is None or not tool.is_installed or not tool.version:
            continue
        major = parse_major_version(tool.version)
        # Unparseable versions are flagged rather than passed.
        if major is not None and major >= policy.threshold:
            continue
        issues.append(
            Issue(
                severity=Severity.WARNING,
                category=Category.VERSION,
                title=policy.title,
                description=policy.description.format(version=tool.version),
                affected_tools=(tool.name,),
                solution=policy.solution,
            )
        )
    return issues


def check_essential_tools(
    tools: Sequence[Tool],
    essentials: Sequence[str] = ESSENTIAL_TOOLS,
    platform: Optional[str] = None,
) -> List[Issue]:
    issues: List[Issue] = []
    known = {tool.name for tool in tools}
    installed = {tool.name for tool in tools if tool.is_installed}
    for name in essentials:
        if name in installed:
            continue
        issues.append(
            Issue(
                severity=Severity.WARNING,
                category=Category.CONFIGURATION,
                title=f"缺少必要工具: {name}",
                description=f"{name} 是开发中常用的工具，建议安装。",
                affected_tools=(name,) if name in known else None,
                solution=install_command(name, platform),
            )
        )
    return issues


def check_end_of_life(
    tools: Sequence[Tool], policies: Mapping[str, VersionPolicy] = END_OF_LIFE
) -> List[Issue]:
    issues: List[Issue] = []
    index = index_tools(tools)
    for name, policy in policies.items():
        tool = index.get(name)
        if tool is None or not tool.is_installed or not tool.version:
            continue
        major = parse_major_version(tool.version)
        if major is None or major >= policy.threshold:
            continue
        issues.append(
            Issue(
                severity=Severity.CRITICAL,
                category=Category.VERSION,
                title=policy.title,
                description=policy.description.format(version=tool.version),
                affected_tools=(tool.name,),
                solution=policy.solution,
            )
        )
    return issues


# ---------------------------------------------------------------------------
# Environment rules
# ---------------------------------------------------------------------------


def check_path_duplicates(
    variables: Sequence[EnvironmentVariable], separator: str = os.pathsep
) -> List[Issue]:
    path_var = next((var for var in variables if var.key.upper() == PATH_KEY), None)
    if path_var is None:
        return []
    segments = path_var.value.split(separator)
    # Compared case-insensitively on every platform.
    unique = {segment.lower() for segment in segments}
    duplicates = len(segments) - len(unique)
    if duplicates == 0:
        return []
    return [
        Issue(
            severity=Severity.INFO,
            category=Category.CONFIGURATION,
            title="PATH 中存在重复条目",
            description=f"PATH 环境变量中有 {duplicates} 个重复条目，可能影响命令查找效率。",
            solution="在环境变量视图中查看详细信息并清理重复项",
        )
    ]


# ---------------------------------------------------------------------------
# Service rules
# ---------------------------------------------------------------------------


def check_port_conflicts(services: Sequence[Service]) -> List[Issue]:
    by_port: Dict[int, List[Service]] = {}
    for service in services:
        if not service.port:
            continue
        by_port.setdefault(service.port, []).append(service)

    issues: List[Issue] = []
    for port, holders in by_port.items():
        if len(holders) < 2:
            continue
        names = ", ".join(f"{service.name} (pid {service.pid})" for service in holders)
        issues.append(
            Issue(
                severity=Severity.WARNING,
                category=Category.CONFLICT,
                title=f"端口 {port} 冲突",
                description=f"有 {len(holders)} 个服务在使用端口 {port}：{names}",
                solution="停止其中一个服务或更改端口配置",
            )
        )
    return issues


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Rule:
    name: str
    scope: str  # tools, environment, services
    check: Callable[[Sequence[Any]], List[Issue]]


RULES: Tuple[Rule, ...] = (
    Rule("version-floor", "tools", check_version_floors),
    Rule("essential-tools", "tools", check_essential_tools),
    Rule("end-of-life", "tools", check_end_of_life),
    Rule("path-duplicates", "environment", check_path_duplicates),
    Rule("port-conflicts", "services", check_port_conflicts),
)


def evaluate_rules(inventory: Inventory, rules: Sequence[Rule] = RULES) -> List[Issue]:
    """Run every rule against its inventory slice, keeping emission order."""
    issues: List[Issue] = []
    for rule in rules:
        found = rule.check(getattr(inventory, rule.scope))
        if found:
            logger.debug("Rule %s emitted %d issue(s)", rule.name, len(found))
        issues.extend(found)
    return issues
