"""Console-friendly formatting utilities."""

from __future__ import annotations

from typing import Iterable, Sequence

from .engine import AnalysisReport
from .inventory import Inventory, Service, Tool
from .rules import Issue, Severity

SEVERITY_LABELS = {Severity.CRITICAL: "严重", Severity.WARNING: "警告", Severity.INFO: "提示"}
PRIORITY_LABELS = {"high": "高", "medium": "中", "low": "低"}


def render_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    widths = [len(h) for h in headers]
    for row in rows:
        for index, cell in enumerate(row):
            widths[index] = max(widths[index], len(cell))
    lines = []
    lines.append(_format_row(headers, widths))
    lines.append(_format_row(["-" * w for w in widths], widths))
    for row in rows:
        lines.append(_format_row(row, widths))
    return "\n".join(lines)


def format_tool_table(tools: Iterable[Tool]) -> str:
    rows = [
        [tool.display_name, tool.version or "-", "已安装" if tool.is_installed else "未安装"]
        for tool in tools
    ]
    return render_table(["工具", "版本", "状态"], rows) if rows else "无工具数据"


def format_service_table(services: Iterable[Service]) -> str:
    rows = [
        [str(service.pid), service.name, str(service.port) if service.port is not None else "-"]
        for service in services
    ]
    return render_table(["PID", "服务", "端口"], rows) if rows else "无服务数据"


def format_issue_table(issues: Iterable[Issue]) -> str:
    rows = [
        [SEVERITY_LABELS[issue.severity], issue.title, issue.description, issue.solution or "-"]
        for issue in issues
    ]
    return render_table(["级别", "问题", "说明", "解决方案"], rows)


def format_inventory(inventory: Inventory) -> str:
    lines = [
        "工具：",
        format_tool_table(inventory.tools),
        f"全局包：{len(inventory.packages)} 个 | 环境变量：{len(inventory.environment)} 个",
        "监听端口的服务：",
        format_service_table(inventory.services),
    ]
    return "\n".join(lines)


def format_report(report: AnalysisReport) -> str:
    lines = [report.summary]
    if report.issues:
        lines.append("\n发现的问题：")
        lines.append(format_issue_table(report.sorted_issues()))
    if report.suggestions:
        lines.append("\n建议：")
        rows = [
            [PRIORITY_LABELS[s.priority.value], s.title, s.description, s.command or "-"]
            for s in report.suggestions
        ]
        lines.append(render_table(["优先级", "建议", "说明", "命令"], rows))
    for insight in report.insights:
        lines.append("\nAI 分析：")
        lines.append(insight)
    return "\n".join(lines)


def _format_row(row: Sequence[str], widths: Sequence[int]) -> str:
    padded = [cell.ljust(width) for cell, width in zip(row, widths)]
    return " | ".join(padded)
