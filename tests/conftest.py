"""
pytest 配置与共享 fixture。

单元测试中 TahoeClient 的请求全部交给 tests.fakegrid.FakeGrid 处理；节点地址见 tests.config。
"""

from __future__ import annotations

from typing import Iterator

import httpx
import pytest

from tahoeapi import Directory, TahoeClient

from tests.config import READONLY_FILE_SIZE, READONLY_NONEMPTY_COUNT, TAHOE_NODE_URL
from tests.fakegrid import FakeGrid, random_data


@pytest.fixture
def grid() -> FakeGrid:
    return FakeGrid()


@pytest.fixture
def client(grid: FakeGrid) -> Iterator[TahoeClient]:
    c = TahoeClient(TAHOE_NODE_URL, transport=grid.transport())
    yield c
    c.close()


@pytest.fixture
def root(client: TahoeClient) -> Directory:
    """节点上新建的空目录（读写）。"""
    return client.root()


@pytest.fixture
def readonly_root(grid: FakeGrid, client: TahoeClient) -> Directory:
    """
    通过只读 cap 打开的目录，内容：
    empty/、non-empty/{0..9}、immutable-file、mutable-file、delete-testfile
    """
    top = grid.new_directory()
    grid.link(top, "empty", grid.new_directory())
    nonempty = grid.new_directory()
    for i in range(READONLY_NONEMPTY_COUNT):
        grid.link(nonempty, str(i), grid.new_file(random_data(i)))
    grid.link(top, "non-empty", nonempty)
    grid.link(top, "immutable-file", grid.new_file(b"i" * READONLY_FILE_SIZE))
    grid.link(top, "mutable-file", grid.new_file(b"m" * READONLY_FILE_SIZE, mutable=True))
    grid.link(top, "delete-testfile", grid.new_file(b"delete me"))
    return client.root(top.ro)


@pytest.fixture
def live_client() -> Iterator[TahoeClient]:
    """
    指向真实节点的客户端；节点不可达则跳过。
    """
    c = TahoeClient(TAHOE_NODE_URL, timeout=10.0)
    try:
        c.request("GET", "/")
    except httpx.TransportError as e:
        c.close()
        pytest.skip(f"Tahoe 节点不可用 ({TAHOE_NODE_URL}): {e}")
    yield c
    c.close()
