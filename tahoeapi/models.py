"""
Tahoe WebAPI 数据模型（?t=json 返回的结构）。

GET /uri/<cap>?t=json 返回二元数组 [类型, 属性]：
- 类型："dirnode"（目录）或 "filenode"（文件）
- 属性：rw_uri / ro_uri / verify_uri、mutable；文件有 size（"?" 表示未知）；
  目录有 children：{名称: [类型, 属性]}
"""

from typing import Any

# NodeJSON：[类型, 属性]
NodeJSON = list[Any]

# NodeAttrs：NodeJSON 的第二项
NodeAttrs = dict[str, Any]

DIRNODE = "dirnode"
FILENODE = "filenode"


def node_type(node: NodeJSON) -> str:
    return node[0]


def node_attrs(node: NodeJSON) -> NodeAttrs:
    return node[1] if len(node) > 1 and node[1] else {}


def is_dirnode(node: NodeJSON) -> bool:
    return node_type(node) == DIRNODE


def node_size(attrs: NodeAttrs) -> int | None:
    """文件大小（字节）；节点未给出或为 "?" 时返回 None，需要重新探测。"""
    size = attrs.get("size")
    if size is None or size == "?":
        return None
    return int(size)


def node_children(attrs: NodeAttrs) -> dict[str, NodeJSON]:
    """目录子项，顺序与节点返回一致。"""
    return attrs.get("children") or {}
