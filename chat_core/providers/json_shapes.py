"""Provider JSON 形态嗅探时共用的小工具。

不同厂商的返回结构差异很大，字段可能缺失、为 null 或类型不对，
这里统一把这些情况视为「字段不存在」，解析函数永远不因此抛异常。
"""

import json
from typing import Any, Iterable, Optional


def is_present(value: Any) -> bool:
    """字段是否「有值」：None、False、空字符串和 0 都视为不存在。

    注意空列表/空字典视为存在。
    """

    if value is None or value is False:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (int, float)):
        return value != 0
    return True


def get_field(obj: Any, key: str) -> Any:
    """安全读取映射字段，obj 不是映射时返回 None。"""

    if isinstance(obj, dict):
        return obj.get(key)
    return None


def first_present(obj: Any, keys: Iterable[str]) -> Optional[Any]:
    """按顺序返回第一个有值的字段。"""

    for key in keys:
        value = get_field(obj, key)
        if is_present(value):
            return value
    return None


def json_string_form(value: Any, indent: Optional[int] = None) -> str:
    """任意 JSON 值的字符串形式，无法序列化的对象退化为 str()。"""

    return json.dumps(value, ensure_ascii=False, indent=indent, default=str)


def plain_string_form(value: Any) -> str:
    """标量值的直接字符串形式：字符串原样返回，其余值按 JSON 书写。"""

    if isinstance(value, str):
        return value
    return json_string_form(value)
