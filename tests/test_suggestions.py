from dev_doctor.inventory import Package, Tool
from dev_doctor.suggestions import Priority, SuggestionKind, generate_suggestions


def make_tools(*installed: str, missing=()):
    tools = [Tool(name=name, display_name=name, is_installed=True, version="1.0.0") for name in installed]
    tools += [Tool(name=name, display_name=name, is_installed=False) for name in missing]
    return tools


def test_faster_package_manager_suggested_when_only_npm():
    suggestions = generate_suggestions(make_tools("node", "npm", "docker"), [])
    assert len(suggestions) == 1
    suggestion = suggestions[0]
    assert suggestion.kind is SuggestionKind.INSTALL
    assert suggestion.priority is Priority.LOW
    assert suggestion.command == "npm install -g yarn"


def test_no_package_manager_suggestion_when_pnpm_installed():
    suggestions = generate_suggestions(make_tools("node", "pnpm", "docker"), [])
    assert suggestions == []


def test_no_package_manager_suggestion_without_node():
    suggestions = generate_suggestions(make_tools("docker", missing=("node",)), [])
    assert suggestions == []


def test_docker_suggested_when_missing():
    suggestions = generate_suggestions(make_tools("node", "yarn", missing=("docker",)), [Package("left-pad", "1.3.0")])
    assert [(s.title, s.priority) for s in suggestions] == [("安装 Docker", Priority.MEDIUM)]
    assert suggestions[0].command is None


def test_empty_inventory_only_suggests_docker():
    suggestions = generate_suggestions([], [])
    assert [s.title for s in suggestions] == ["安装 Docker"]


def test_never_suggests_installing_installed_tools():
    tools = make_tools("node", "yarn", "pnpm", "docker")
    assert generate_suggestions(tools, []) == []
