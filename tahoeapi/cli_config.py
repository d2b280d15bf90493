"""
CLI 配置：节点地址 node_url 加一组命名的目录 cap（别名）。

    {"node_url": "http://127.0.0.1:3456", "aliases": {"tahoe": "URI:DIR2:..."}}

命令默认使用 DEFAULT_ALIAS；--cap 可以给别名，也可以直接给 URI:... 形式的 cap。
别名对应的多是读写 cap，文件权限设为 0600。
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

DEFAULT_ALIAS = "tahoe"


def _config_dir() -> Path:
    """配置目录：~/.config/tahoeapi（所有平台统一）。"""
    return Path.home() / ".config" / "tahoeapi"


def _config_path() -> Path:
    return _config_dir() / "config.json"


def _write(data: dict[str, Any]) -> None:
    p = _config_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    p.chmod(0o600)


def load_config() -> dict[str, Any] | None:
    """
    读取本地配置；文件不存在、无法解析、缺少 node_url 或 aliases 不是
    {名字: cap} 字典时返回 None。旧文件没有 aliases 时补成空字典。
    """
    p = _config_path()
    if not p.exists():
        return None
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    if not isinstance(data, dict) or not isinstance(data.get("node_url"), str):
        return None
    aliases = data.setdefault("aliases", {})
    if not isinstance(aliases, dict) or not all(isinstance(v, str) for v in aliases.values()):
        return None
    return data


def save_config(node_url: str, root_cap: str | None = None, alias: str = DEFAULT_ALIAS) -> None:
    """
    保存节点地址。给出 root_cap 时记到别名 alias 下（同名覆盖），
    已保存的其他别名保留。
    """
    data = load_config() or {"aliases": {}}
    data["node_url"] = node_url.rstrip("/")
    if root_cap is not None:
        data["aliases"][alias] = root_cap
    _write(data)


def get_alias(name: str = DEFAULT_ALIAS) -> str | None:
    cfg = load_config()
    return cfg["aliases"].get(name) if cfg else None


def remove_alias(name: str) -> bool:
    """删除别名；不存在返回 False。"""
    cfg = load_config()
    if not cfg or name not in cfg["aliases"]:
        return False
    del cfg["aliases"][name]
    _write(cfg)
    return True


def clear_config() -> bool:
    """清除本地配置；存在则删除并返回 True。"""
    p = _config_path()
    if p.exists():
        p.unlink()
        return True
    return False
