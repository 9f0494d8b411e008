"""Loader 注册表。

职责：
1) 维护 loader 注册表（标识符 -> 零参数工厂）。
2) 供 `RegistryContext` 按描述符里的 `modelLoaderClassName` 查找 loader。
3) 在注册参数错误时给出清晰、可执行的报错信息。

与 provider 工厂不同，这里的标识符区分大小写：
它通常就是 loader 的完整类名（如 `my_models.iris.IrisLoader`）。
"""

from __future__ import annotations

import threading
from typing import Any, Callable

LoaderFactory = Callable[[], Any]


class LoaderRegistry:
    """进程级 loader 注册表。"""

    _LOADERS: dict[str, LoaderFactory] = {}
    _LOCK = threading.Lock()

    @classmethod
    def register_loader(cls, identifier: str, factory: LoaderFactory) -> None:
        """注册一个 loader 工厂。

        参数说明：
        - identifier: 描述符中使用的 loader 标识符，前后空白会被去掉。
        - factory: 零参数可调用对象（通常就是 loader 类本身）。
        """

        normalized = identifier.strip()
        if not normalized:
            raise ValueError("Loader identifier cannot be empty")

        if not callable(factory):
            raise ValueError("Loader factory must be callable")

        with cls._LOCK:
            cls._LOADERS[normalized] = factory

    @classmethod
    def unregister(cls, identifier: str) -> None:
        with cls._LOCK:
            cls._LOADERS.pop(identifier.strip(), None)

    @classmethod
    def get(cls, identifier: str) -> LoaderFactory | None:
        return cls._LOADERS.get(identifier.strip())

    @classmethod
    def list_loaders(cls) -> list[str]:
        """返回已注册 loader 标识符列表（字母序）。

        使用字母序可避免“注册顺序不同导致日志顺序变化”。
        """

        return sorted(cls._LOADERS.keys())


def register_loader(identifier: str) -> Callable[[LoaderFactory], LoaderFactory]:
    """类装饰器形式的注册入口。

    用法：
        @register_loader("my_models.iris.IrisLoader")
        class IrisLoader(BaseModelLoader): ...
    """

    def decorator(factory: LoaderFactory) -> LoaderFactory:
        LoaderRegistry.register_loader(identifier, factory)
        return factory

    return decorator
