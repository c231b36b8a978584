"""Entry point for the dev-doctor command line tool."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .config import PROVIDERS, load_advisory_config
from .engine import AnalysisReport, Analyzer
from .formatting import PRIORITY_LABELS, SEVERITY_LABELS, format_inventory, format_report
from .inventory import Inventory, gather_inventory
from .rules import Severity

SEVERITY_STYLES = {Severity.CRITICAL: "bold red", Severity.WARNING: "yellow", Severity.INFO: "cyan"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="检查本机开发环境并给出问题与建议。")
    parser.add_argument("--json", action="store_true", help="以 JSON 输出清单和分析结果")
    parser.add_argument("--ui", action="store_true", help="以 Rich 风格输出更美观的终端 UI")
    parser.add_argument("--packages", type=int, default=None, help="最多收集的全局包数量")
    parser.add_argument("--provider", choices=PROVIDERS, default=None, help="AI 提供商")
    parser.add_argument("--model", default=None, help="AI 模型名称")
    parser.add_argument("--api-key", default=None, help="AI API Key（默认读取环境变量）")
    parser.add_argument("--no-ai", action="store_true", help="关闭 AI 分析")
    parser.add_argument("--verbose", "-v", action="store_true", help="输出调试日志")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )

    config = load_advisory_config(
        provider=args.provider, api_key=args.api_key, model=args.model, disabled=args.no_ai
    )
    analyzer = Analyzer(config)
    inventory = gather_inventory(top_n_packages=args.packages)
    report = asyncio.run(analyzer.analyze_inventory(inventory))

    if args.json:
        print(_to_json(inventory, report))
        return

    if args.ui:
        _render_rich(inventory, report)
        return

    print(format_inventory(inventory))
    print()
    print(format_report(report))


def _to_json(inventory: Inventory, report: AnalysisReport) -> str:
    payload: Dict[str, Any] = {"inventory": asdict(inventory), "report": report.to_dict()}
    return json.dumps(payload, ensure_ascii=False, indent=2)


def _render_rich(inventory: Inventory, report: AnalysisReport) -> None:
    console = Console()

    healthy = not report.issues
    console.print(Panel(report.summary, style="bold green" if healthy else "bold cyan"))

    tools = Table(title="开发工具", box=box.SIMPLE_HEAD)
    tools.add_column("工具", style="bold")
    tools.add_column("版本")
    tools.add_column("状态")
    for tool in inventory.tools:
        status = "[green]已安装[/green]" if tool.is_installed else "[dim]未安装[/dim]"
        tools.add_row(tool.display_name, tool.version or "-", status)
    console.print(tools)

    if report.issues:
        issues = Table(title="发现的问题", box=box.SIMPLE_HEAD)
        issues.add_column("级别")
        issues.add_column("问题", style="bold")
        issues.add_column("说明")
        issues.add_column("解决方案")
        for issue in report.sorted_issues():
            style = SEVERITY_STYLES[issue.severity]
            issues.add_row(
                f"[{style}]{SEVERITY_LABELS[issue.severity]}[/{style}]",
                issue.title,
                issue.description,
                issue.solution or "-",
            )
        console.print(issues)

    if report.suggestions:
        suggestions = Table(title="建议", box=box.SIMPLE_HEAD)
        suggestions.add_column("优先级", justify="center")
        suggestions.add_column("建议", style="bold")
        suggestions.add_column("说明")
        suggestions.add_column("命令")
        for suggestion in report.suggestions:
            suggestions.add_row(
                PRIORITY_LABELS[suggestion.priority.value],
                suggestion.title,
                suggestion.description,
                suggestion.command or "-",
            )
        console.print(suggestions)

    for insight in report.insights:
        console.print(Panel(insight, title="AI 分析", box=box.ROUNDED))


if __name__ == "__main__":
    main()
