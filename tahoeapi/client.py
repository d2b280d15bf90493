"""
Tahoe-LAFS WebAPI Python 客户端：节点连接与请求路径。

所有对象（文件/目录）的请求都经由 TahoeClient 发往同一个节点，
路径形如 /uri/<cap>/<百分号编码的相对路径>。
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any
from urllib.parse import quote, urlparse

import httpx

from tahoeapi.exceptions import NotFoundError, TypeMismatchError
from tahoeapi.models import NodeJSON

if TYPE_CHECKING:
    from tahoeapi.objects import Directory, File, GridObject

logger = logging.getLogger(__name__)

# 旧版节点对不存在的路径会返回含糊的重定向（300/301），与 404 一样视为不存在
NOT_FOUND_STATUS = frozenset({404, 300, 301})

# check/repair 可能持续数小时
CHECK_TIMEOUT = 6 * 60 * 60.0


def _path_for_url(path: str) -> str:
    """将相对路径按段做百分号编码（冒号、空格等都会编码），保留段之间的 /。"""
    segments = [seg for seg in path.split("/") if seg]
    return "/".join(quote(seg, safe="") for seg in segments)


def check_response(response: httpx.Response) -> httpx.Response:
    """NOT_FOUND_STATUS -> NotFoundError，其余非 2xx 交给 raise_for_status。"""
    if response.status_code in NOT_FOUND_STATUS:
        raise NotFoundError(f"{response.request.method} {response.request.url.path}: {response.status_code}")
    response.raise_for_status()
    return response


class TahoeClient:
    """
    Tahoe 节点 WebAPI 客户端（一个节点 = 一个 endpoint）。

    示例： base_url="http://127.0.0.1:3456"
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        check_timeout: float = CHECK_TIMEOUT,
        verify: bool = True,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        :param base_url: 节点 WebAPI 根地址，如 http://127.0.0.1:3456（不要带 /uri）
        :param timeout: 普通读写请求超时秒数
        :param check_timeout: check/repair 请求超时秒数
        :param verify: 是否验证 HTTPS 证书
        :param transport: 自定义 httpx transport（测试时传 httpx.MockTransport）
        """
        self.base_url = base_url.rstrip("/")
        parsed = urlparse(self.base_url)
        self.scheme = parsed.scheme or "http"
        self.host = parsed.hostname or ""
        self.port = parsed.port or (443 if self.scheme == "https" else 80)
        self.timeout = timeout
        self.check_timeout = check_timeout
        self.verify = verify
        self._transport = transport
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        if self._client is None or self._client.is_closed:
            # 不跟随重定向：300/301 要原样交给 NOT_FOUND_STATUS 判断
            self._client = httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout,
                verify=self.verify,
                follow_redirects=False,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """关闭底层 HTTP 客户端。"""
        if self._client and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> TahoeClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"TahoeClient({self.base_url!r})"

    # ------------------------- 请求 -------------------------

    def build_uri_path(self, cap: str, path: str = "") -> str:
        """
        返回 cap 下相对路径的请求路径。

        :param cap: 对象的 cap，原样拼接
        :param path: 相对路径，如 "docs/a b.txt"；空串表示对象本身
        :return: 如 "/uri/URI:DIR2:xx:yy/docs/a%20b.txt"
        """
        escaped = _path_for_url(path)
        url = f"/uri/{cap}/{escaped}" if escaped else f"/uri/{cap}"
        return re.sub(r"/{2,}", "/", url)

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        content: bytes | str | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """向节点发一次请求并返回响应（不检查状态码）。"""
        r = self._get_client().request(
            method,
            path,
            params=params,
            content=content,
            headers=headers,
            timeout=timeout if timeout is not None else self.timeout,
        )
        logger.debug("%s %s -> %d", method, r.request.url, r.status_code)
        return r

    def fetch_node(self, path: str) -> NodeJSON:
        """
        GET <path>?t=json，返回 [类型, 属性]。

        非 200 一律视为不存在（NotFoundError），5xx 除外（httpx.HTTPStatusError）。
        """
        r = self.request("GET", path, params={"t": "json"})
        if r.status_code == 200:
            return r.json()
        if r.is_server_error:
            r.raise_for_status()
        raise NotFoundError(f"{path}: {r.status_code}")

    # ------------------------- 对象入口 -------------------------

    def get(self, cap: str) -> GridObject:
        """按 cap 取元数据，返回 File 或 Directory。"""
        from tahoeapi.objects import GridObject

        return GridObject.from_cap(self, cap)

    def root(self, cap: str | None = None) -> Directory:
        """
        返回根目录。

        :param cap: 目录 cap；为 None 时在节点上新建一个空目录
        """
        from tahoeapi.objects import Directory

        if cap is None:
            return Directory.create(self)
        obj = self.get(cap)
        if not isinstance(obj, Directory):
            raise TypeMismatchError(f"not a directory cap: {cap}")
        return obj

    def create_directory(self) -> Directory:
        """POST /uri?t=mkdir 新建一个不挂在任何目录下的空目录。"""
        from tahoeapi.objects import Directory

        return Directory.create(self)

    def upload(self, data: bytes, mutable: bool = False) -> File:
        """上传一个不挂在任何目录下的文件。"""
        from tahoeapi.objects import File

        return File.create(self, data, mutable=mutable)
