"""
Tahoe 网格对象：文件（File）与目录（Directory）。

对象只保存 cap 与少量元数据，不缓存目录内容；每次列目录、取子项都重新请求节点。
cap 优先级：读写 cap > 只读 cap > 校验/修复 cap，所有请求都使用优先级最高的那个。
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterator

from tahoeapi.client import TahoeClient, check_response
from tahoeapi.exceptions import (
    AlreadyExistsError,
    InvalidArgumentError,
    NotFoundError,
    ReadOnlyError,
    TahoeError,
    TypeMismatchError,
)
from tahoeapi.models import NodeJSON, is_dirnode, node_attrs, node_children, node_size

logger = logging.getLogger(__name__)


def _flag(value: bool) -> str:
    return "true" if value else "false"


def _is_self_path(path: str) -> bool:
    return path.strip("/") in ("", ".")


def _normalize_path(path: str) -> str:
    """去掉前导、末尾及重复的 /，与请求路径的拼接方式一致。"""
    return "/".join(seg for seg in path.split("/") if seg)


class GridObject:
    """文件与目录的公共部分：三种 cap、可变性及完整性检查。"""

    def __init__(
        self,
        client: TahoeClient,
        *,
        rw_cap: str | None = None,
        ro_cap: str | None = None,
        repair_cap: str | None = None,
        mutable: bool = False,
    ):
        if rw_cap is None and ro_cap is None and repair_cap is None:
            raise InvalidArgumentError("object needs at least one cap")
        self.client = client
        self.rw_cap = rw_cap
        self.ro_cap = ro_cap
        self.repair_cap = repair_cap
        self.mutable = bool(mutable)

    @classmethod
    def from_cap(cls, client: TahoeClient, cap: str) -> GridObject:
        """GET /uri/<cap>?t=json 并按返回的类型构造 File 或 Directory。"""
        return from_json(client, client.fetch_node(client.build_uri_path(cap)))

    @property
    def readable(self) -> bool:
        return self.ro_cap is not None

    @property
    def writeable(self) -> bool:
        return self.rw_cap is not None

    @property
    def immutable(self) -> bool:
        return not self.mutable

    @property
    def cap(self) -> str:
        """权限最高的 cap（读写 > 只读 > 修复）。"""
        if self.rw_cap is not None:
            return self.rw_cap
        if self.ro_cap is not None:
            return self.ro_cap
        return self.repair_cap  # type: ignore[return-value]

    root_uri = cap

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.cap!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GridObject):
            return NotImplemented
        return type(self) is type(other) and self.cap == other.cap

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.cap))

    # ------------------------- 完整性检查 -------------------------

    def _check_request(self, verify: bool, add_lease: bool, repair: bool) -> dict[str, Any]:
        params = {
            "t": "check",
            "verify": _flag(verify),
            "add-lease": _flag(add_lease),
            "output": "JSON",
        }
        if repair:
            params["repair"] = "true"
        r = self.client.request(
            "POST",
            self.client.build_uri_path(self.cap),
            params=params,
            timeout=self.client.check_timeout,
        )
        return check_response(r).json()

    def check(self, verify: bool = False, add_lease: bool = False) -> dict[str, Any]:
        """
        检查对象的健康状况，返回节点给出的 results（结构由节点决定，不做校验）。

        大对象可能耗时数小时，超时由 TahoeClient.check_timeout 控制。

        :param verify: 是否下载并校验全部分片（慢）
        :param add_lease: 是否顺带续租
        """
        return self._check_request(verify, add_lease, repair=False).get("results", {})

    def repair(self, verify: bool = False, add_lease: bool = False) -> bool | None:
        """
        检查并在需要时修复。

        :return: 未尝试修复为 None；修复成功为 True；修复失败为 False
        """
        data = self._check_request(verify, add_lease, repair=True)
        if not data.get("repair-attempted"):
            return None
        ok = bool(data.get("repair-successful"))
        logger.info("repair of %s %s", self.cap, "succeeded" if ok else "failed")
        return ok

    def healthy(self) -> bool:
        return bool(self.check().get("healthy"))


class File(GridObject):
    """不可变或可变文件。"""

    def __init__(self, client: TahoeClient, *, known_size: int | None = None, **caps: Any):
        super().__init__(client, **caps)
        # None 表示大小未知（可变文件），每次 size() 都重新探测
        self.known_size = known_size

    @classmethod
    def create(cls, client: TahoeClient, data: bytes, mutable: bool = False) -> File:
        """
        PUT /uri 上传新文件，返回包装新 cap 的 File。

        :param data: 文件内容
        :param mutable: True 时创建可变文件（PUT /uri?mutable=true）
        """
        r = client.request(
            "PUT",
            "/uri",
            params={"mutable": "true"} if mutable else None,
            content=data,
            headers={"Content-Type": "application/octet-stream"},
        )
        cap = check_response(r).text.strip()
        if mutable:
            return cls(client, rw_cap=cap, mutable=True)
        return cls(client, ro_cap=cap, mutable=False, known_size=len(data))

    def size(self) -> int:
        """文件大小；构造时未知则用 HEAD 探测 content-length（不缓存）。"""
        if self.known_size is not None:
            return self.known_size
        r = check_response(self.client.request("HEAD", self.client.build_uri_path(self.cap)))
        length = r.headers.get("content-length")
        if length is None:
            raise TahoeError(f"node sent no content-length for {self.cap}")
        return int(length)

    def data(self) -> bytes:
        r = self.client.request("GET", self.client.build_uri_path(self.cap))
        return check_response(r).content


class Directory(GridObject):
    """
    目录。path 参数均为相对本目录的 / 分隔路径，如 "a.txt" 或 "sub/a.txt"。

    不缓存任何子项：目录随时可能被其他客户端修改。
    """

    @classmethod
    def create(cls, client: TahoeClient) -> Directory:
        """POST /uri?t=mkdir，直接包装返回的 cap（不再取元数据）。"""
        r = client.request("POST", "/uri", params={"t": "mkdir"})
        cap = check_response(r).text.strip()
        return cls(client, rw_cap=cap, mutable=True)

    def _require_writeable(self) -> None:
        if not self.writeable:
            raise ReadOnlyError(f"directory is read-only: {self.cap}")

    def build_path_url(self, path: str) -> str:
        """返回本目录下 path 的请求路径，如 /uri/<cap>/sub/a.txt。"""
        return self.client.build_uri_path(self.cap, path)

    # ------------------------- 子项 -------------------------

    def index_child(self, path: str) -> GridObject:
        """取 path 处的对象；不存在时抛 NotFoundError。"""
        return from_json(self.client, self.client.fetch_node(self.build_path_url(path)))

    __getitem__ = index_child

    def exists(self, path: str) -> bool:
        try:
            self.index_child(path)
        except NotFoundError:
            return False
        return True

    def assign_child(self, path: str, target: GridObject | str) -> None:
        """
        把已有对象（或 cap 字符串）挂到 path 上：PUT <path>?t=uri，body 为 cap。

        同一对象可以挂在多个路径下，rename 即基于此实现。
        """
        self._require_writeable()
        cap = target if isinstance(target, str) else target.cap
        r = self.client.request(
            "PUT",
            self.build_path_url(path),
            params={"t": "uri"},
            content=cap,
            headers={"Content-Type": "text/plain"},
        )
        # 覆盖已有目录时节点会返回 500
        r.raise_for_status()

    __setitem__ = assign_child

    def put_file(self, path: str, data: bytes, mutable: bool = False) -> str:
        """上传文件并挂到 path 上，返回新文件的 cap。"""
        self._require_writeable()
        new_file = File.create(self.client, data, mutable=mutable)
        self.assign_child(path, new_file)
        return new_file.cap

    def mkdir(self, path: str) -> Directory:
        """
        新建子目录。

        :param path: 相对路径，末尾一个 / 会被去掉
        :raises AlreadyExistsError: 目标已存在（400）
        """
        self._require_writeable()
        if path.endswith("/"):
            path = path[:-1]
        r = self.client.request("POST", self.build_path_url(path), params={"t": "mkdir"})
        if r.status_code == 400:
            raise AlreadyExistsError(f"already exists: {path}")
        cap = check_response(r).text.strip()
        return Directory(self.client, rw_cap=cap, mutable=True)

    def delete(self, path: str) -> None:
        """删除 path 处的链接（对象本身仍可通过其他路径或 cap 访问）。"""
        self._require_writeable()
        check_response(self.client.request("DELETE", self.build_path_url(path)))

    # ------------------------- 列目录 -------------------------

    def children(self) -> Iterator[tuple[str, GridObject]]:
        """按节点返回的顺序产出 (名称, 对象)。每次调用都重新请求。"""
        node = self.client.fetch_node(self.build_path_url(""))
        for name, child in node_children(node_attrs(node)).items():
            yield name, from_json(self.client, child)

    __iter__ = children

    def each(self, visitor: Callable[[str, GridObject], Any]) -> None:
        for name, obj in self.children():
            visitor(name, obj)

    def is_empty(self) -> bool:
        return next(self.children(), None) is None

    def _resolve_directory(self, path: str) -> Directory:
        if _is_self_path(path):
            return self
        obj = self.index_child(path)
        if not isinstance(obj, Directory):
            raise TypeMismatchError(f"not a directory: {path}")
        return obj

    def list_directory(self, path: str = ".") -> list[str]:
        """
        列出 path 处目录的子项名称，子目录名称末尾带 /。

        :raises NotFoundError: path 不存在
        :raises TypeMismatchError: path 是文件
        """
        if path.endswith("/"):
            path = path[:-1]
        return [
            f"{name}/" if isinstance(obj, Directory) else name
            for name, obj in self._resolve_directory(path).children()
        ]

    def list_paths_starting_with(self, prefix: str = "/") -> list[str]:
        """
        返回所有以 prefix 开头的路径（递归进入匹配到的子目录）。

        如 prefix="/docs/my" 会列出 /docs/ 下以 my 开头的项，以及这些子目录下的全部内容。
        父目录不存在或是文件时返回空列表。
        """
        cut = prefix.rfind("/") + 1
        parent, partial = prefix[:cut], prefix[cut:]
        try:
            directory = self._resolve_directory(parent)
        except (NotFoundError, TypeMismatchError):
            return []
        paths: list[str] = []
        for name, obj in directory.children():
            if not name.startswith(partial):
                continue
            if isinstance(obj, Directory):
                path = f"{parent}{name}/"
                paths.append(path)
                paths.extend(path + sub for sub in obj.list_paths_starting_with(""))
            else:
                paths.append(parent + name)
        return paths

    # ------------------------- 文件 -------------------------

    def get_file_size(self, path: str) -> int:
        obj = self.index_child(path)
        if not isinstance(obj, File):
            raise TypeMismatchError(f"not a file: {path}")
        return obj.size()

    get_size = get_file_size

    def get_file(self, path: str) -> bytes:
        """下载 path 处文件的内容。"""
        obj = self.index_child(path)
        if not isinstance(obj, File):
            raise TypeMismatchError(f"not a file: {path}")
        return obj.data()

    def get_file_url(self, url: str) -> bytes:
        """直接 GET 一个已拼好的请求路径（见 build_path_url）。"""
        return check_response(self.client.request("GET", url)).content

    # ------------------------- 重命名 -------------------------

    def rename(self, old_path: str, new_path: str) -> None:
        """
        重命名 = 在 new_path 新增链接，再删除 old_path。

        节点没有原生 rename，两步之间被中断时对象会同时出现在两个路径下。

        :raises InvalidArgumentError: 旧路径为空、新旧路径相同，或试图把目录移动到它自己的子目录下（不发任何请求）
        """
        old, new = _normalize_path(old_path), _normalize_path(new_path)
        if not old or new == old or new.startswith(old + "/"):
            raise InvalidArgumentError(f"cannot rename {old_path} into itself ({new_path})")
        self._require_writeable()
        obj = self.index_child(old_path)
        self.assign_child(new_path, obj)
        self.delete(old_path)
        logger.info("renamed %s -> %s in %s", old_path, new_path, self.cap)


def from_json(client: TahoeClient, node: NodeJSON) -> GridObject:
    """按 [类型, 属性] 构造 Directory（dirnode）或 File（其余类型）。"""
    attrs = node_attrs(node)
    caps = {
        "rw_cap": attrs.get("rw_uri"),
        "ro_cap": attrs.get("ro_uri"),
        "repair_cap": attrs.get("verify_uri"),
        "mutable": attrs.get("mutable", False),
    }
    if is_dirnode(node):
        return Directory(client, **caps)
    return File(client, known_size=node_size(attrs), **caps)
