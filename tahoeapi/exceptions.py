"""
Tahoe WebAPI 客户端异常。

其余 HTTP 状态错误沿用 httpx 自身的异常（raise_for_status -> httpx.HTTPStatusError）。
"""


class TahoeError(Exception):
    """本库所有异常的基类。"""


class NotFoundError(TahoeError):
    """cap 或路径不存在（404，以及旧版节点的 300/301）。"""


class ReadOnlyError(TahoeError):
    """对没有读写 cap 的对象做修改操作。"""


class AlreadyExistsError(TahoeError):
    """mkdir 目标已存在（节点返回 400）。"""


class InvalidArgumentError(TahoeError, ValueError):
    """非法参数，如把目录移动到它自己或它的子目录下。"""


class TypeMismatchError(TahoeError, TypeError):
    """期望文件却得到目录，或反之。"""
