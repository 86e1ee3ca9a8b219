"""渲染层协议。

会话层只向渲染层发送抽象事件，不关心具体是终端、GUI 还是浏览器。
所有调用都发生在同一个事件循环线程内，实现者无需加锁。
"""

from typing import Protocol, Sequence

from chat_core.domain.models import Role


class RenderingSurface(Protocol):
    def append_message(self, text: str, role: Role) -> None:
        """追加一条消息气泡（纯文本）。"""
        ...

    def append_placeholder(self, handle: str) -> None:
        """追加「思考中」占位元素，handle 在会话内唯一。"""
        ...

    def replace_placeholder(self, handle: str, text: str, as_html: bool) -> None:
        """用最终回复或错误信息替换占位元素。as_html 为 False 时必须按纯文本展示。"""
        ...

    def remove_placeholder(self, handle: str) -> None:
        ...

    def set_catalog_loading(self, loading: bool) -> None:
        ...

    def set_catalog(self, models: Sequence[str]) -> None:
        ...
