"""
真实 Tahoe 节点上的集成测试（TAHOE_NODE_URL，见 tests.config）。节点不可达时整组跳过。

每个测试都在节点上新建一个独立的根目录，不影响已有数据。
"""

from __future__ import annotations

import pytest

from tahoeapi import AlreadyExistsError, Directory, File, NotFoundError, TahoeClient

from tests.config import INTEGRATION_CHECK_TIMEOUT


@pytest.fixture
def live_root(live_client: TahoeClient) -> Directory:
    return live_client.root()


@pytest.mark.integration
class TestLiveNode:
    def test_put_get_rename_delete(self, live_root: Directory) -> None:
        live_root.mkdir("/test/")
        live_root.put_file("/test/file.txt", b"Leroy was here")
        assert live_root.get_file("/test/file.txt") == b"Leroy was here"
        assert live_root.get_file_size("/test/file.txt") == 14
        live_root.rename("/test/file.txt", "/test/renamed.txt")
        assert live_root.list_directory("/test/") == ["renamed.txt"]
        live_root.delete("/test/renamed.txt")
        with pytest.raises(NotFoundError):
            live_root.get_file("/test/renamed.txt")

    def test_mkdir_twice(self, live_root: Directory) -> None:
        live_root.mkdir("dup")
        with pytest.raises(AlreadyExistsError):
            live_root.mkdir("dup")

    def test_mutable_file(self, live_client: TahoeClient) -> None:
        f = live_client.upload(b"mutable contents", mutable=True)
        fetched = live_client.get(f.cap)
        assert isinstance(fetched, File)
        assert fetched.mutable
        assert fetched.size() == len(b"mutable contents")
        assert fetched.data() == b"mutable contents"

    def test_check(self, live_client: TahoeClient, live_root: Directory) -> None:
        live_client.check_timeout = INTEGRATION_CHECK_TIMEOUT
        assert isinstance(live_root.healthy(), bool)
