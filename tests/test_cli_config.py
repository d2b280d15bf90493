"""
CLI 配置（cli_config）单元测试。
"""

from __future__ import annotations

from pathlib import Path

import pytest

from tahoeapi.cli_config import DEFAULT_ALIAS, clear_config, get_alias, load_config, remove_alias, save_config

from tests.config import TAHOE_NODE_URL

ROOT_CAP = "URI:DIR2:w1:fp1"


@pytest.fixture(autouse=True)
def _patch_config_path(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """将配置路径指向临时目录，避免污染用户 ~/.config/tahoeapi。"""
    config_dir = tmp_path / "tahoeapi"
    config_dir.mkdir(parents=True, exist_ok=True)

    def _config_dir():
        return config_dir

    monkeypatch.setattr("tahoeapi.cli_config._config_dir", _config_dir)


def test_load_config_missing_returns_none() -> None:
    assert load_config() is None


def test_load_config_invalid_json_returns_none(tmp_path: Path) -> None:
    config_file = tmp_path / "tahoeapi" / "config.json"
    config_file.write_text("not json", encoding="utf-8")
    assert load_config() is None


def test_load_config_missing_node_url_returns_none(tmp_path: Path) -> None:
    config_file = tmp_path / "tahoeapi" / "config.json"
    config_file.write_text(f'{{"aliases": {{"tahoe": "{ROOT_CAP}"}}}}', encoding="utf-8")
    assert load_config() is None


def test_save_config_round_trip(tmp_path: Path) -> None:
    save_config(TAHOE_NODE_URL, ROOT_CAP)
    cfg = load_config()
    assert cfg == {"node_url": TAHOE_NODE_URL, "aliases": {DEFAULT_ALIAS: ROOT_CAP}}
    # root cap 是凭证，文件只对本人可读
    assert (tmp_path / "tahoeapi" / "config.json").stat().st_mode & 0o777 == 0o600


def test_save_config_strips_trailing_slash() -> None:
    save_config(f"{TAHOE_NODE_URL}/")
    cfg = load_config()
    assert cfg is not None
    assert cfg["node_url"] == TAHOE_NODE_URL
    assert cfg["aliases"] == {}


def test_clear_config_removes_file() -> None:
    save_config(TAHOE_NODE_URL, ROOT_CAP)
    assert clear_config() is True
    assert load_config() is None
    assert clear_config() is False


def test_load_config_without_aliases_key(tmp_path: Path) -> None:
    config_file = tmp_path / "tahoeapi" / "config.json"
    config_file.write_text(f'{{"node_url": "{TAHOE_NODE_URL}"}}', encoding="utf-8")
    assert load_config() == {"node_url": TAHOE_NODE_URL, "aliases": {}}


@pytest.mark.parametrize("aliases", ['["tahoe"]', '{"tahoe": 1}'])
def test_load_config_bad_aliases_returns_none(tmp_path: Path, aliases: str) -> None:
    config_file = tmp_path / "tahoeapi" / "config.json"
    config_file.write_text(f'{{"node_url": "{TAHOE_NODE_URL}", "aliases": {aliases}}}', encoding="utf-8")
    assert load_config() is None


def test_save_config_keeps_other_aliases() -> None:
    save_config(TAHOE_NODE_URL, ROOT_CAP)
    save_config(TAHOE_NODE_URL, "URI:DIR2-RO:r2:fp2", "backup")
    save_config("http://10.0.0.2:3456")
    cfg = load_config()
    assert cfg is not None
    assert cfg["node_url"] == "http://10.0.0.2:3456"
    assert cfg["aliases"] == {DEFAULT_ALIAS: ROOT_CAP, "backup": "URI:DIR2-RO:r2:fp2"}
    assert get_alias() == ROOT_CAP
    assert get_alias("backup") == "URI:DIR2-RO:r2:fp2"
    assert get_alias("nope") is None


def test_remove_alias() -> None:
    assert remove_alias("backup") is False
    save_config(TAHOE_NODE_URL, ROOT_CAP, "backup")
    assert remove_alias("backup") is True
    assert remove_alias("backup") is False
    assert load_config() == {"node_url": TAHOE_NODE_URL, "aliases": {}}
