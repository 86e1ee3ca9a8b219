"""API 密钥来源与解析。

候选来源按固定优先级排列：

1. 进程级密钥（启动时从配置/环境变量读取，之后只读）。
2. 界面输入的密钥（用户随时可以修改）。

resolve_credential 取第一个去空白后非空的值；全部缺失时返回 None，
调用方必须把 None 当作请求前置条件失败处理，不能发起网络请求。
"""

from typing import Iterable, Optional, Tuple


class CredentialStore:
    """注入给会话层的密钥存储。"""

    def __init__(self, process_key: Optional[str] = None):
        self._process_key = process_key
        self._ui_key: Optional[str] = None

    @property
    def process_key(self) -> Optional[str]:
        return self._process_key

    @property
    def ui_key(self) -> Optional[str]:
        return self._ui_key

    def set_ui_key(self, value: Optional[str]) -> None:
        self._ui_key = value

    def candidates(self) -> Tuple[Optional[str], Optional[str]]:
        return (self._process_key, self._ui_key)

    def resolve(self) -> Optional[str]:
        return resolve_credential(self.candidates())


def resolve_credential(candidates: Iterable[Optional[str]]) -> Optional[str]:
    for candidate in candidates:
        if not isinstance(candidate, str):
            continue
        value = candidate.strip()
        if value:
            return value
    return None
