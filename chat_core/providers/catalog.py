"""模型列表（/models 响应）归一化。

OpenAI 兼容服务的 /models 返回结构并不统一，常见的有：

- 直接返回数组：["a", "b"] 或 [{"id": "a"}, ...]
- OpenAI 风格：{"data": [{"id": "a"}, ...]}
- 部分本地服务：{"models": [{"name": "a"}, ...]}

parse_catalog 按优先级尝试上述形态并返回带标签的变体，
normalize_catalog 再将其展开成有序的模型 ID 列表。列表为空时使用兜底模型，
并通过 CatalogResult.used_fallback 通知调用方（非致命）。
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Union

from chat_core.domain.models import CatalogResult
from chat_core.providers.json_shapes import first_present, get_field, json_string_form, plain_string_form


FALLBACK_MODELS = ("gpt-4o-mini", "gpt-4o", "gpt-3.5-turbo")
MAX_KEYED_MODELS = 20

# 数组元素里取 ID 的字段顺序：顶层数组与 data/models 包装的顺序不同
_BARE_LIST_FIELDS = ("id", "model", "name")
_WRAPPED_LIST_FIELDS = ("id", "name", "model")


@dataclass
class BareListCatalog:
    items: List[Any]


@dataclass
class DataListCatalog:
    items: List[Any]


@dataclass
class ModelsListCatalog:
    items: List[Any]


@dataclass
class KeyedCatalog:
    keys: List[str]


@dataclass
class OpaqueCatalog:
    raw: Any


CatalogShape = Union[BareListCatalog, DataListCatalog, ModelsListCatalog, KeyedCatalog, OpaqueCatalog]


def parse_catalog(raw: Any) -> CatalogShape:
    """识别 /models 响应的形态，先匹配者优先。"""

    if isinstance(raw, list):
        return BareListCatalog(items=raw)
    data = get_field(raw, "data")
    if isinstance(data, list):
        return DataListCatalog(items=data)
    models = get_field(raw, "models")
    if isinstance(models, list):
        return ModelsListCatalog(items=models)
    if isinstance(raw, dict):
        return KeyedCatalog(keys=[str(k) for k in list(raw.keys())[:MAX_KEYED_MODELS]])
    return OpaqueCatalog(raw=raw)


def _bare_item_id(item: Any) -> str:
    value = first_present(item, _BARE_LIST_FIELDS)
    if value is not None:
        return plain_string_form(value)
    return plain_string_form(item)


def _wrapped_item_id(item: Any) -> str:
    value = first_present(item, _WRAPPED_LIST_FIELDS)
    if value is not None:
        return plain_string_form(value)
    return json_string_form(item)


def catalog_model_ids(shape: CatalogShape) -> List[str]:
    if isinstance(shape, BareListCatalog):
        return [_bare_item_id(item) for item in shape.items]
    if isinstance(shape, (DataListCatalog, ModelsListCatalog)):
        return [_wrapped_item_id(item) for item in shape.items]
    if isinstance(shape, KeyedCatalog):
        return list(shape.keys)
    return []


def normalize_catalog(raw: Any, fallback: Optional[Sequence[str]] = None) -> CatalogResult:
    """把任意 /models 响应转换为模型 ID 列表，永不抛异常。"""

    models = catalog_model_ids(parse_catalog(raw))
    if models:
        return CatalogResult(models=models, used_fallback=False)
    return CatalogResult(models=list(fallback or FALLBACK_MODELS), used_fallback=True)
