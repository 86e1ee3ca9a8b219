"""终端版渲染层与表单控件。

ChatControls 对应网页上的表单输入（模型下拉框、温度、系统提示词），
ConsoleSurface 把会话层的事件输出到终端。
"""

import html
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, TextIO

from chat_core.config.settings import Settings
from chat_core.domain.models import GenerationConfig, Role


@dataclass
class ChatControls:
    """当前的表单状态，每次发送时通过 read_config 读取最新值。"""

    temperature: float = 0.7
    system_prompt: str = ""
    model: Optional[str] = None
    models: List[str] = field(default_factory=list)

    @classmethod
    def from_settings(cls, cfg: Settings) -> "ChatControls":
        return cls(
            temperature=cfg.default_temperature,
            system_prompt=cfg.system_prompt,
            model=cfg.default_model,
        )

    def set_models(self, models: Sequence[str]) -> None:
        """载入新的模型列表；当前选中项不在列表中时选中第一项（与下拉框行为一致）。"""

        self.models = list(models)
        if self.model not in self.models:
            self.model = self.models[0] if self.models else None

    def select_model(self, model: str) -> None:
        self.model = model.strip() or None

    def read_config(self) -> GenerationConfig:
        return GenerationConfig(
            model=self.model,
            temperature=self.temperature,
            system_prompt=self.system_prompt or "",
        )


class ConsoleSurface:
    """输出到终端的 RenderingSurface 实现。"""

    PLACEHOLDER_TEXT = "Thinking…"
    _PREFIX: Dict[str, str] = {"user": "you", "assistant": "bot", "system": "info"}

    def __init__(self, controls: ChatControls, out: Optional[TextIO] = None):
        self._controls = controls
        self._out = out or sys.stdout
        self._pending: Dict[str, bool] = {}

    def append_message(self, text: str, role: Role) -> None:
        self._write(role, text)

    def append_placeholder(self, handle: str) -> None:
        self._pending[handle] = True
        self._write("assistant", self.PLACEHOLDER_TEXT)

    def replace_placeholder(self, handle: str, text: str, as_html: bool) -> None:
        self._pending.pop(handle, None)
        if as_html:
            # 只会出现 <br> 与转义字符，还原成终端文本
            text = html.unescape(text.replace("<br>", "\n"))
        self._write("assistant", text)

    def remove_placeholder(self, handle: str) -> None:
        self._pending.pop(handle, None)

    def set_catalog_loading(self, loading: bool) -> None:
        if loading:
            self._write("system", "Loading models…")

    def set_catalog(self, models: Sequence[str]) -> None:
        self._controls.set_models(models)
        if models:
            self._write("system", f"Models: {', '.join(models)} (selected: {self._controls.model})")
        else:
            self._write("system", "No models available")

    @property
    def pending_placeholders(self) -> List[str]:
        return list(self._pending)

    def _write(self, role: str, text: str) -> None:
        print(f"[{self._PREFIX.get(role, role)}] {text}", file=self._out, flush=True)
