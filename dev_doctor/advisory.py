"""Optional remote advisory service that turns an inventory into free-form insight text."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Union

import aiohttp

from .inventory import Inventory

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "你是一个专业的开发环境顾问，帮助开发者优化他们的开发环境。"
PACKAGE_SAMPLE_SIZE = 10

OPENAI_URL = "https://api.openai.com/v1/chat/completions"
ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"
DEFAULT_MODELS = {"openai": "gpt-3.5-turbo", "anthropic": "claude-3-haiku-20240307"}


@dataclass(frozen=True)
class AdvisoryConfig:
    provider: str = "openai"
    api_key: Optional[str] = None
    model: Optional[str] = None
    enabled: bool = False
    timeout: float = 30.0

    def __repr__(self) -> str:
        key = "***" if self.api_key else None
        return (
            f"AdvisoryConfig(provider={self.provider!r}, api_key={key!r}, "
            f"model={self.model!r}, enabled={self.enabled!r}, timeout={self.timeout!r})"
        )


@dataclass(frozen=True)
class AdvisoryDisabled:
    """No advisory calls are made."""


@dataclass(frozen=True)
class AdvisoryActive:
    config: AdvisoryConfig


AdvisoryState = Union[AdvisoryDisabled, AdvisoryActive]


def advisory_state(config: Optional[AdvisoryConfig]) -> AdvisoryState:
    """Decide the advisory state from a complete config.

    Only an enabled config carrying a non-empty credential becomes active.
    """
    if config is None or not config.enabled or not (config.api_key or "").strip():
        return AdvisoryDisabled()
    return AdvisoryActive(config)


@dataclass(frozen=True)
class AdvisoryRequest:
    provider: str
    api_key: str
    model: Optional[str]
    prompt: str
    timeout: float = 30.0


class AdvisoryError(Exception):
    """Raised by a transport for non-success or malformed responses."""


Transport = Callable[[AdvisoryRequest], Awaitable[str]]


def build_prompt(inventory: Inventory) -> str:
    tools = "\n".join(
        f"- {tool.display_name}: {tool.version or '未知版本'}" for tool in inventory.installed_tools
    )
    packages = "\n".join(
        f"- {package.name}@{package.version}" for package in inventory.packages[:PACKAGE_SAMPLE_SIZE]
    )
    return (
        "作为一个开发环境专家，请分析以下开发环境并提供建议：\n"
        "\n"
        "已安装的工具:\n"
        f"{tools}\n"
        "\n"
        f"全局包 (前{PACKAGE_SAMPLE_SIZE}个):\n"
        f"{packages}\n"
        "\n"
        f"运行中的服务: {len(inventory.services)} 个\n"
        "\n"
        f"环境变量: {len(inventory.environment)} 个\n"
        "\n"
        "请提供:\n"
        "1. 环境健康度评估\n"
        "2. 潜在问题和风险\n"
        "3. 优化建议\n"
        "4. 最佳实践建议\n"
        "\n"
        "请用中文回答，简洁明了。"
    )


async def http_transport(request: AdvisoryRequest) -> str:
    """Send one request to the configured provider and return the response text."""
    if request.provider == "openai":
        url = OPENAI_URL
        headers = {"Authorization": f"Bearer {request.api_key}"}
        body: Dict[str, Any] = {
            "model": request.model or DEFAULT_MODELS["openai"],
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": request.prompt},
            ],
            "temperature": 0.7,
            "max_tokens": 1000,
        }
    elif request.provider == "anthropic":
        url = ANTHROPIC_URL
        headers = {"x-api-key": request.api_key, "anthropic-version": "2023-06-01"}
        body = {
            "model": request.model or DEFAULT_MODELS["anthropic"],
            "system": SYSTEM_PROMPT,
            "messages": [{"role": "user", "content": request.prompt}],
            "max_tokens": 1000,
        }
    else:
        raise AdvisoryError(f"不支持的 AI 提供商: {request.provider}")

    timeout = aiohttp.ClientTimeout(total=request.timeout)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        async with session.post(url, json=body, headers=headers) as response:
            if response.status >= 400:
                raise AdvisoryError(f"{request.provider} API 错误: {response.status} {response.reason}")
            data = await response.json(content_type=None)
    return extract_text(request.provider, data)


def extract_text(provider: str, data: Any) -> str:
    try:
        if provider == "anthropic":
            text = "".join(block["text"] for block in data["content"] if block.get("type") == "text")
        else:
            text = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError, AttributeError) as exc:
        raise AdvisoryError(f"无法解析 AI 响应: {exc!r}") from exc
    if not isinstance(text, str) or not text.strip():
        raise AdvisoryError("无法获取 AI 响应")
    return text


class AdvisoryClient:
    """Single-shot advisory call. ``insight`` always returns text and never raises."""

    def __init__(self, config: AdvisoryConfig, transport: Optional[Transport] = None) -> None:
        self.config = config
        self._transport = transport or http_transport

    async def insight(self, inventory: Inventory) -> str:
        request = AdvisoryRequest(
            provider=self.config.provider,
            api_key=self.config.api_key or "",
            model=self.config.model,
            prompt=build_prompt(inventory),
            timeout=self.config.timeout,
        )
        try:
            return await self._transport(request)
        except AdvisoryError as exc:
            logger.warning("Advisory request rejected: %s", exc)
            return f"AI 分析失败: {exc}"
        except asyncio.TimeoutError:
            logger.warning("Advisory request timed out after %.0fs", self.config.timeout)
            return f"AI 分析失败: 请求超时（{self.config.timeout:.0f} 秒）"
        except (aiohttp.ClientError, ValueError) as exc:
            logger.warning("Advisory request failed: %s", exc)
            return f"AI 分析失败: {exc}"
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected advisory failure")
            return f"AI 分析失败: {exc}"
