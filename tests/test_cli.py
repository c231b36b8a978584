import json

from dev_doctor import cli
from dev_doctor.inventory import EnvironmentVariable, Inventory, Service, Tool


def fake_inventory(top_n_packages=None) -> Inventory:
    return Inventory(
        tools=[
            Tool(name="node", display_name="Node.js", is_installed=True, version="16.20.0"),
            Tool(name="git", display_name="Git", is_installed=True, version="2.43.0"),
        ],
        environment=[EnvironmentVariable("HOME", "/root")],
        services=[Service(pid=1, name="api", port=8000), Service(pid=2, name="worker", port=8000)],
    )


def test_json_output(monkeypatch, capsys):
    monkeypatch.setattr(cli, "gather_inventory", fake_inventory)
    cli.main(["--json", "--no-ai"])
    payload = json.loads(capsys.readouterr().out)
    assert payload["inventory"]["tools"][0]["name"] == "node"
    titles = [issue["title"] for issue in payload["report"]["issues"]]
    assert titles == ["Node.js 版本过旧", "缺少必要工具: npm", "端口 8000 冲突"]
    assert payload["report"]["insights"] == []


def test_plain_output(monkeypatch, capsys):
    monkeypatch.setattr(cli, "gather_inventory", fake_inventory)
    cli.main(["--no-ai"])
    out = capsys.readouterr().out
    assert "检测到 2 个已安装的工具。 有 3 个警告。" in out
    assert "端口 8000 冲突" in out


def test_rich_output(monkeypatch, capsys):
    monkeypatch.setattr(cli, "gather_inventory", fake_inventory)
    cli.main(["--ui", "--no-ai"])
    out = capsys.readouterr().out
    assert "发现的问题" in out
