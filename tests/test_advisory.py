import asyncio

import aiohttp
import pytest

from dev_doctor.advisory import (
    AdvisoryActive,
    AdvisoryClient,
    AdvisoryConfig,
    AdvisoryDisabled,
    AdvisoryError,
    AdvisoryRequest,
    advisory_state,
    build_prompt,
    extract_text,
    http_transport,
)
from dev_doctor.inventory import EnvironmentVariable, Inventory, Package, Service, Tool


def make_inventory(package_count: int = 12) -> Inventory:
    return Inventory(
        tools=[
            Tool(name="node", display_name="Node.js", is_installed=True, version="20.1.0"),
            Tool(name="docker", display_name="Docker", is_installed=False),
        ],
        packages=[Package(name=f"pkg{i}", version=f"1.{i}.0") for i in range(package_count)],
        environment=[EnvironmentVariable("PATH", "/usr/bin"), EnvironmentVariable("HOME", "/root")],
        services=[Service(pid=10, name="postgres", port=5432)],
    )


def active_config(**overrides) -> AdvisoryConfig:
    values = dict(provider="openai", api_key="sk-test", model="gpt-4o-mini", enabled=True)
    values.update(overrides)
    return AdvisoryConfig(**values)


def test_advisory_state_requires_enabled_and_key():
    assert isinstance(advisory_state(None), AdvisoryDisabled)
    assert isinstance(advisory_state(active_config(enabled=False)), AdvisoryDisabled)
    assert isinstance(advisory_state(active_config(api_key=None)), AdvisoryDisabled)
    assert isinstance(advisory_state(active_config(api_key="   ")), AdvisoryDisabled)
    state = advisory_state(active_config())
    assert isinstance(state, AdvisoryActive)
    assert state.config.api_key == "sk-test"


def test_config_repr_hides_credential():
    assert "sk-test" not in repr(active_config())


def test_prompt_lists_installed_tools_and_samples_packages():
    prompt = build_prompt(make_inventory())
    assert "- Node.js: 20.1.0" in prompt
    assert "Docker" not in prompt
    assert "- pkg9@1.9.0" in prompt
    assert "pkg10" not in prompt
    assert "运行中的服务: 1 个" in prompt
    assert "环境变量: 2 个" in prompt


def test_prompt_is_deterministic():
    assert build_prompt(make_inventory()) == build_prompt(make_inventory())


def test_insight_returns_transport_text():
    requests = []

    async def transport(request):
        requests.append(request)
        return "环境整体健康。"

    client = AdvisoryClient(active_config(), transport=transport)
    assert asyncio.run(client.insight(make_inventory())) == "环境整体健康。"
    assert len(requests) == 1
    assert requests[0].provider == "openai"
    assert requests[0].model == "gpt-4o-mini"
    assert requests[0].api_key == "sk-test"
    assert "Node.js" in requests[0].prompt


@pytest.mark.parametrize(
    "error",
    [
        AdvisoryError("openai API 错误: 401 Unauthorized"),
        aiohttp.ClientConnectionError("connection refused"),
        asyncio.TimeoutError(),
        ValueError("Expecting value"),
        RuntimeError("boom"),
    ],
)
def test_insight_converts_failures_to_text(error):
    async def transport(request):
        raise error

    client = AdvisoryClient(active_config(), transport=transport)
    text = asyncio.run(client.insight(make_inventory()))
    assert text.startswith("AI 分析失败")


def test_extract_text_openai():
    data = {"choices": [{"message": {"content": "ok"}}]}
    assert extract_text("openai", data) == "ok"


def test_extract_text_anthropic():
    data = {"content": [{"type": "text", "text": "first "}, {"type": "text", "text": "second"}]}
    assert extract_text("anthropic", data) == "first second"


@pytest.mark.parametrize("data", [{}, {"choices": []}, {"choices": [{"message": {"content": ""}}]}, None])
def test_extract_text_rejects_malformed_bodies(data):
    with pytest.raises(AdvisoryError):
        extract_text("openai", data)


def test_unsupported_provider_reported_as_text():
    client = AdvisoryClient(active_config(provider="local"))
    text = asyncio.run(client.insight(make_inventory()))
    assert "不支持的 AI 提供商" in text


def test_http_transport_rejects_unknown_provider_before_network():
    request = AdvisoryRequest(provider="local", api_key="k", model=None, prompt="hi")
    with pytest.raises(AdvisoryError):
        asyncio.run(http_transport(request))
