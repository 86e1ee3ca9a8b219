"""Chat 响应归一化与安全过滤。

本模块负责：

1. parse_chat_response：识别 Provider 响应属于哪种已知形态（choices / output / result），
   都不匹配时返回 OpaqueResponse 保留原始值。
2. extract_text：把任意 JSON 值转换为助手纯文本，对任何输入都有返回值，
   最坏情况返回整个响应的 JSON 文本。
3. render_reply：渲染前的安全过滤。回复里出现 <script / </script（不区分大小写）时
   只能按纯文本展示；其余情况先做 HTML 转义，再把换行替换为 <br>。
"""

import html
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Union

from chat_core.domain.models import RenderedReply
from chat_core.providers.json_shapes import (
    first_present,
    get_field,
    is_present,
    json_string_form,
    plain_string_form,
)


SCRIPT_PATTERN = re.compile(r"</?script", re.IGNORECASE)


@dataclass
class ChoicesResponse:
    """OpenAI 风格：{"choices": [{"message": {"content": ...}}]}。"""

    choice: Any


@dataclass
class OutputResponse:
    output: Any


@dataclass
class ResultResponse:
    result: Any


@dataclass
class OpaqueResponse:
    raw: Any


ResponseShape = Union[ChoicesResponse, OutputResponse, ResultResponse, OpaqueResponse]


def parse_chat_response(raw: Any) -> ResponseShape:
    choices = get_field(raw, "choices")
    if isinstance(choices, list) and choices and is_present(choices[0]):
        return ChoicesResponse(choice=choices[0])
    output = get_field(raw, "output")
    if is_present(output):
        return OutputResponse(output=output)
    result = get_field(raw, "result")
    if is_present(result):
        return ResultResponse(result=result)
    return OpaqueResponse(raw=raw)


def _choice_text(choice: Any) -> Optional[str]:
    # 依次尝试 message.content、text（旧版 completions）、delta.content（流式残留）
    value = get_field(get_field(choice, "message"), "content")
    if not is_present(value):
        value = get_field(choice, "text")
    if not is_present(value):
        value = get_field(get_field(choice, "delta"), "content")
    if not is_present(value):
        return None
    return plain_string_form(value)


def _output_text(output: Any) -> str:
    if isinstance(output, str):
        return output
    if isinstance(output, list):
        parts: List[str] = []
        for item in output:
            content = first_present(item, ("content",))
            parts.append(plain_string_form(content) if content is not None else json_string_form(item))
        return "\n".join(parts)
    return json_string_form(output)


def extract_text(raw: Any) -> str:
    """从任意 Provider 响应中提取助手文本。"""

    shape = parse_chat_response(raw)
    if isinstance(shape, ChoicesResponse):
        # 命中 choices 但没有任何内容字段时返回空回复，不再尝试其他形态
        return _choice_text(shape.choice) or ""
    if isinstance(shape, OutputResponse):
        return _output_text(shape.output)
    if isinstance(shape, ResultResponse):
        return plain_string_form(shape.result)
    # 没有任何已知字段：原样展示，便于排查 Provider 的返回结构
    return json_string_form(raw, indent=2)


def contains_script(text: str) -> bool:
    return bool(SCRIPT_PATTERN.search(text or ""))


def render_reply(text: str) -> RenderedReply:
    """决定回复的展示方式。

    含 script 标签的文本不允许作为 HTML 展示；其他文本只允许「换行 -> <br>」这一种标记。
    """

    text = text or ""
    if contains_script(text):
        return RenderedReply(text=text, as_html=False)
    return RenderedReply(text=html.escape(text, quote=False).replace("\n", "<br>"), as_html=True)
