"""Collect a snapshot of the tools, packages, variables and services on this machine."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import os
import re
import shutil
import subprocess
from importlib import metadata
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import psutil

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tool:
    name: str
    display_name: str
    is_installed: bool
    version: Optional[str] = None
    path: Optional[str] = None


@dataclass(frozen=True)
class Package:
    name: str
    version: str


@dataclass(frozen=True)
class EnvironmentVariable:
    key: str
    value: str


@dataclass(frozen=True)
class Service:
    pid: int
    name: str
    port: Optional[int] = None
    command: str = ""


@dataclass
class Inventory:
    tools: List[Tool] = field(default_factory=list)
    packages: List[Package] = field(default_factory=list)
    environment: List[EnvironmentVariable] = field(default_factory=list)
    services: List[Service] = field(default_factory=list)

    @property
    def installed_tools(self) -> List[Tool]:
        return [tool for tool in self.tools if tool.is_installed]


# name -> (display name, executable, version arguments)
TOOL_CATALOGUE: Tuple[Tuple[str, str, str, Tuple[str, ...]], ...] = (
    ("node", "Node.js", "node", ("--version",)),
    ("npm", "npm", "npm", ("--version",)),
    ("yarn", "Yarn", "yarn", ("--version",)),
    ("pnpm", "pnpm", "pnpm", ("--version",)),
    ("git", "Git", "git", ("--version",)),
    ("python", "Python", "python3", ("--version",)),
    ("pip", "pip", "pip3", ("--version",)),
    ("docker", "Docker", "docker", ("--version",)),
    ("php", "PHP", "php", ("--version",)),
    ("composer", "Composer", "composer", ("--version",)),
)

_SEMVER_PATTERN = re.compile(r"v?(\d+\.\d+\.\d+(?:-[a-zA-Z0-9.]+)?)", re.IGNORECASE)
_NUMERIC_PATTERN = re.compile(r"(\d+\.\d+(?:\.\d+)?)")


def parse_version_output(output: str) -> Optional[str]:
    """Pull a version string out of free-form ``--version`` output.

    ``v18.17.0`` and ``Python 3.11.4`` become ``18.17.0`` and ``3.11.4``;
    output without a recognisable version yields ``None``.
    """
    if not output:
        return None
    text = output.strip()
    match = _SEMVER_PATTERN.search(text) or _NUMERIC_PATTERN.search(text)
    return match.group(1) if match else None


def gather_inventory(top_n_packages: Optional[int] = None) -> Inventory:
    """Collect the current machine inventory."""
    packages = _installed_packages()
    if top_n_packages is not None:
        packages = packages[:top_n_packages]
    inventory = Inventory(
        tools=[_detect_tool(*entry) for entry in TOOL_CATALOGUE],
        packages=packages,
        environment=environment_from_mapping(os.environ),
        services=_listening_services(),
    )
    logger.debug(
        "Collected %d tools (%d installed), %d packages, %d variables, %d services",
        len(inventory.tools),
        len(inventory.installed_tools),
        len(inventory.packages),
        len(inventory.environment),
        len(inventory.services),
    )
    return inventory


def environment_from_mapping(environ: Mapping[str, str]) -> List[EnvironmentVariable]:
    return [EnvironmentVariable(key=key, value=value) for key, value in environ.items()]


def _detect_tool(name: str, display_name: str, executable: str, args: Sequence[str]) -> Tool:
    path = shutil.which(executable)
    if path is None:
        return Tool(name=name, display_name=display_name, is_installed=False)
    try:
        result = subprocess.run(
            [path, *args], capture_output=True, text=True, timeout=10, check=False
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        logger.debug("Version probe for %s failed: %s", name, exc)
        return Tool(name=name, display_name=display_name, is_installed=False, path=path)
    if result.returncode != 0:
        return Tool(name=name, display_name=display_name, is_installed=False, path=path)
    # Some tools (older Python) print the version on stderr.
    version = parse_version_output(result.stdout) or parse_version_output(result.stderr)
    return Tool(name=name, display_name=display_name, is_installed=True, version=version, path=path)


def _installed_packages() -> List[Package]:
    packages: List[Package] = []
    for dist in metadata.distributions():
        name = dist.metadata.get("Name")
        if not name:
            continue
        packages.append(Package(name=name, version=dist.version))
    return packages


def _listening_services() -> List[Service]:
    try:
        connections = psutil.net_connections(kind="inet")
    except psutil.AccessDenied:
        # macOS needs root for the system-wide table; fall back to per-process queries.
        return _listening_services_per_process(psutil.process_iter())

    services: List[Service] = []
    seen: set = set()
    for conn in connections:
        if conn.status != psutil.CONN_LISTEN or not conn.laddr or conn.pid is None:
            continue
        key = (conn.pid, conn.laddr.port)
        if key in seen:
            continue
        seen.add(key)
        service = _service_for(conn.pid, conn.laddr.port)
        if service is not None:
            services.append(service)
    return services


def _listening_services_per_process(processes: Iterable[psutil.Process]) -> List[Service]:
    services: List[Service] = []
    for proc in processes:
        try:
            with proc.oneshot():
                ports = sorted(
                    {
                        conn.laddr.port
                        for conn in proc.net_connections(kind="inet")
                        if conn.status == psutil.CONN_LISTEN and conn.laddr
                    }
                )
                name = proc.name()
                command = " ".join(proc.cmdline())
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            continue
        for port in ports:
            services.append(Service(pid=proc.pid, name=name, port=port, command=command))
    return services


def _service_for(pid: int, port: int) -> Optional[Service]:
    try:
        proc = psutil.Process(pid)
        with proc.oneshot():
            return Service(pid=pid, name=proc.name(), port=port, command=" ".join(proc.cmdline()))
    except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
        return None


def index_tools(tools: Iterable[Tool]) -> Dict[str, Tool]:
    """Map tool identifiers to records, keeping the first record for each name."""
    index: Dict[str, Tool] = {}
    for tool in tools:
        index.setdefault(tool.name, tool)
    return index
