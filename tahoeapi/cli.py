"""
tahoeapi CLI：节点地址与根目录 cap 保存一次，之后所有命令默认使用。
"""

from __future__ import annotations

import getpass
import json
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import httpx
import typer

from tahoeapi import Directory, File, TahoeClient, TahoeError
from tahoeapi.cli_config import DEFAULT_ALIAS, clear_config, get_alias, load_config, remove_alias, save_config


_SIZE_UNITS = ("KiB", "MiB", "GiB", "TiB")


def _format_size(n: int) -> str:
    """字节数写成 "1.5 MiB" 的形式，超过 TiB 仍按 TiB 计。"""
    if n < 1024:
        return f"{n} B"
    value = float(n)
    for unit in _SIZE_UNITS:
        value /= 1024
        if value < 1024 or unit == _SIZE_UNITS[-1]:
            break
    return f"{value:.1f} {unit}"


app = typer.Typer(
    name="tahoeapi",
    help="Tahoe-LAFS WebAPI CLI. Save node URL and root cap once; all paths are relative to the root cap.",
)

# 可选参数：覆盖保存的节点地址 / 根 cap
_node_url_option: type = Annotated[
    Optional[str],
    typer.Option("--node-url", "-n", help="Override saved node URL (e.g. http://127.0.0.1:3456)"),
]
_cap_option: type = Annotated[
    Optional[str],
    typer.Option("--cap", "-c", help=f"Root directory cap (URI:...) or saved alias name [default alias: {DEFAULT_ALIAS}]"),
]


def _fail(message: object) -> NoReturn:
    typer.echo(f"error: {message}", err=True)
    raise typer.Exit(1)


def _get_client(node_url: str | None) -> TahoeClient | None:
    cfg = load_config()
    url = node_url or (cfg and cfg.get("node_url"))
    if not url:
        return None
    return TahoeClient(url, timeout=30.0)


def _require_client(node_url: str | None) -> TahoeClient:
    client = _get_client(node_url)
    if client is None:
        _fail("no saved node URL. run 'tahoeapi login' or pass --node-url")
    return client


def _root_cap(cap: str | None) -> str:
    """--cap 以 URI: 开头时直接当作 cap，否则按别名（默认 DEFAULT_ALIAS）查配置。"""
    if cap and cap.startswith("URI:"):
        return cap
    name = cap or DEFAULT_ALIAS
    root_cap = get_alias(name)
    if root_cap:
        return root_cap
    if cap:
        _fail(f"unknown alias '{name}'. run 'tahoeapi add-alias {name} URI:...' or pass --cap URI:...")
    _fail("no root cap. run 'tahoeapi login --cap ...', 'tahoeapi mkroot --save' or pass --cap")


# ------------------------- login / logout / info -------------------------


@app.command("login", help="Save node URL and root cap to local config")
def login(
    node_url: Annotated[Optional[str], typer.Option("--node-url", "-n", help="Tahoe node WebAPI URL")] = None,
    cap: Annotated[Optional[str], typer.Option("--cap", "-c", help="Root directory cap (unsafe in shell)")] = None,
    alias: Annotated[str, typer.Option("--alias", "-a", help="Alias to save the cap under")] = DEFAULT_ALIAS,
) -> None:
    node_url = node_url or input("Node URL (e.g. http://127.0.0.1:3456): ").strip()
    if not node_url:
        _fail("node URL required")
    if cap is None:
        cap = getpass.getpass("Root cap (empty for none): ").strip() or None
    save_config(node_url, cap, alias)
    typer.echo("Saved.")


@app.command("logout", help="Clear saved node URL and all aliases")
def logout() -> None:
    if clear_config():
        typer.echo("Cleared.")
    else:
        typer.echo("No saved config.")


@app.command("info", help="Show saved node URL and alias names (caps are not printed)")
def info_cmd() -> None:
    cfg = load_config()
    if not cfg:
        typer.echo("Not logged in. Run 'tahoeapi login' or pass --node-url for commands.")
        return
    typer.echo(f"node_url: {cfg.get('node_url')}")
    typer.echo(f"aliases: {', '.join(sorted(cfg['aliases'])) or '(none)'}")


@app.command("add-alias", help="Save a directory cap under a name usable with --cap")
def add_alias_cmd(
    name: Annotated[str, typer.Argument(help="Alias name")],
    cap: Annotated[str, typer.Argument(help="Directory cap (URI:...)")],
) -> None:
    cfg = load_config()
    if not cfg:
        _fail("no saved node URL. run 'tahoeapi login' first")
    if not cap.startswith("URI:"):
        _fail(f"not a cap: {cap}")
    save_config(cfg["node_url"], cap, name)
    typer.echo(f"Alias '{name}' saved.")


@app.command("rm-alias", help="Forget a saved alias")
def rm_alias_cmd(name: Annotated[str, typer.Argument(help="Alias name")]) -> None:
    if not remove_alias(name):
        _fail(f"unknown alias '{name}'")
    typer.echo(f"Alias '{name}' removed.")


@app.command("mkroot", help="Create a new empty directory and print its cap")
def mkroot_cmd(
    save: Annotated[bool, typer.Option("--save", help="Save the new cap under --alias")] = False,
    alias: Annotated[str, typer.Option("--alias", "-a", help="Alias used with --save")] = DEFAULT_ALIAS,
    node_url: _node_url_option = None,
) -> None:
    client = _require_client(node_url)
    try:
        directory = client.create_directory()
    except (TahoeError, httpx.HTTPError) as e:
        _fail(e)
    finally:
        client.close()
    if save:
        save_config(client.base_url, directory.cap, alias)
    typer.echo(directory.cap)


# ------------------------- ls / find -------------------------


@app.command("ls", help="List a directory (subdirectories end with /)")
def ls_cmd(
    path: Annotated[str, typer.Argument(help="Directory path below the root cap")] = ".",
    long: Annotated[bool, typer.Option("--long", "-l", help="Show file sizes")] = False,
    node_url: _node_url_option = None,
    cap: _cap_option = None,
) -> None:
    client = _require_client(node_url)
    try:
        root = client.root(_root_cap(cap))
        if not long:
            for name in root.list_directory(path):
                typer.echo(name)
            return
        target = root if path.strip("/") in ("", ".") else root.index_child(path)
        if not isinstance(target, Directory):
            _fail(f"not a directory: {path}")
        for name, obj in target.children():
            if isinstance(obj, File):
                typer.echo(f"  {name}  {_format_size(obj.size())}")
            else:
                typer.echo(f"  {name}/  -")
    except (TahoeError, httpx.HTTPError) as e:
        _fail(e)
    finally:
        client.close()


@app.command("find", help="List every path starting with PREFIX (recursive)")
def find_cmd(
    prefix: Annotated[str, typer.Argument(help="Path prefix, e.g. /docs/my")] = "/",
    node_url: _node_url_option = None,
    cap: _cap_option = None,
) -> None:
    client = _require_client(node_url)
    try:
        paths = client.root(_root_cap(cap)).list_paths_starting_with(prefix)
    except (TahoeError, httpx.HTTPError) as e:
        _fail(e)
    finally:
        client.close()
    for p in sorted(paths):
        typer.echo(p)


# ------------------------- get / put / size -------------------------


@app.command("get", help="Download a file")
def get_cmd(
    remote_path: Annotated[str, typer.Argument(help="File path below the root cap")],
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Local path (default: same name)")] = None,
    node_url: _node_url_option = None,
    cap: _cap_option = None,
) -> None:
    client = _require_client(node_url)
    out = output if output is not None else Path(Path(remote_path.rstrip("/")).name)
    try:
        content = client.root(_root_cap(cap)).get_file(remote_path)
    except (TahoeError, httpx.HTTPError) as e:
        _fail(e)
    finally:
        client.close()
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(content)
    typer.echo(f"Saved to {out}.")


@app.command("put", help="Upload a local file and link it into the root directory; prints the new cap")
def put_cmd(
    local_path: Annotated[Path, typer.Argument(help="Local file")],
    remote_path: Annotated[Optional[str], typer.Argument(help="Remote path (default: local name)")] = None,
    mutable: Annotated[bool, typer.Option("--mutable", "-m", help="Create a mutable file")] = False,
    node_url: _node_url_option = None,
    cap: _cap_option = None,
) -> None:
    if not local_path.is_file():
        _fail(f"not a file: {local_path}")
    client = _require_client(node_url)
    try:
        new_cap = client.root(_root_cap(cap)).put_file(
            remote_path or local_path.name,
            local_path.read_bytes(),
            mutable=mutable,
        )
    except (TahoeError, httpx.HTTPError) as e:
        _fail(e)
    finally:
        client.close()
    typer.echo(new_cap)


@app.command("size", help="Print the size of a file in bytes")
def size_cmd(
    remote_path: Annotated[str, typer.Argument(help="File path below the root cap")],
    node_url: _node_url_option = None,
    cap: _cap_option = None,
) -> None:
    client = _require_client(node_url)
    try:
        size = client.root(_root_cap(cap)).get_file_size(remote_path)
    except (TahoeError, httpx.HTTPError) as e:
        _fail(e)
    finally:
        client.close()
    typer.echo(str(size))


# ------------------------- mkdir / rm / mv -------------------------


@app.command("mkdir", help="Create a directory")
def mkdir_cmd(
    path: Annotated[str, typer.Argument(help="Directory path below the root cap")],
    node_url: _node_url_option = None,
    cap: _cap_option = None,
) -> None:
    client = _require_client(node_url)
    try:
        client.root(_root_cap(cap)).mkdir(path)
    except (TahoeError, httpx.HTTPError) as e:
        _fail(e)
    finally:
        client.close()
    typer.echo("Created.")


@app.command("rm", help="Unlink a file or directory")
def rm_cmd(
    path: Annotated[str, typer.Argument(help="Path below the root cap")],
    node_url: _node_url_option = None,
    cap: _cap_option = None,
) -> None:
    client = _require_client(node_url)
    try:
        client.root(_root_cap(cap)).delete(path)
    except (TahoeError, httpx.HTTPError) as e:
        _fail(e)
    finally:
        client.close()
    typer.echo("Deleted.")


@app.command("mv", help="Rename (link at NEW, then unlink OLD; not atomic)")
def mv_cmd(
    old_path: Annotated[str, typer.Argument(help="Existing path")],
    new_path: Annotated[str, typer.Argument(help="New path")],
    node_url: _node_url_option = None,
    cap: _cap_option = None,
) -> None:
    client = _require_client(node_url)
    try:
        client.root(_root_cap(cap)).rename(old_path, new_path)
    except (TahoeError, httpx.HTTPError) as e:
        _fail(e)
    finally:
        client.close()
    typer.echo("Renamed.")


# ------------------------- check / repair -------------------------


@app.command("check", help="Check (and optionally repair) a file or directory")
def check_cmd(
    path: Annotated[str, typer.Argument(help="Path below the root cap (default: the root itself)")] = "",
    verify: Annotated[bool, typer.Option("--verify", help="Download and verify every share (slow)")] = False,
    add_lease: Annotated[bool, typer.Option("--add-lease", help="Renew leases while checking")] = False,
    repair: Annotated[bool, typer.Option("--repair", help="Repair if unhealthy")] = False,
    node_url: _node_url_option = None,
    cap: _cap_option = None,
) -> None:
    client = _require_client(node_url)
    try:
        root = client.root(_root_cap(cap))
        target = root if path.strip("/") in ("", ".") else root.index_child(path)
        if repair:
            result = target.repair(verify=verify, add_lease=add_lease)
        else:
            results = target.check(verify=verify, add_lease=add_lease)
    except (TahoeError, httpx.HTTPError) as e:
        _fail(e)
    finally:
        client.close()
    if not repair:
        typer.echo(json.dumps(results, ensure_ascii=False, indent=2))
    elif result is None:
        typer.echo("Healthy, no repair needed.")
    elif result:
        typer.echo("Repaired.")
    else:
        _fail("repair failed")


# ------------------------- main -------------------------


def main() -> None:
    app()


if __name__ == "__main__":
    main()
