from typing import List, Sequence

import pytest


class RecordingSurface:
    """按顺序记录会话事件的渲染层。"""

    def __init__(self):
        self.events: List[tuple] = []
        self.placeholders = {}

    def append_message(self, text, role):
        self.events.append(("append_message", text, role))

    def append_placeholder(self, handle):
        self.placeholders[handle] = None
        self.events.append(("append_placeholder", handle))

    def replace_placeholder(self, handle, text, as_html):
        self.placeholders[handle] = (text, as_html)
        self.events.append(("replace_placeholder", handle, text, as_html))

    def remove_placeholder(self, handle):
        self.placeholders.pop(handle, None)
        self.events.append(("remove_placeholder", handle))

    def set_catalog_loading(self, loading):
        self.events.append(("set_catalog_loading", loading))

    def set_catalog(self, models: Sequence[str]):
        self.events.append(("set_catalog", list(models)))

    def names(self) -> List[str]:
        return [e[0] for e in self.events]

    def messages(self, role) -> List[str]:
        return [e[1] for e in self.events if e[0] == "append_message" and e[2] == role]


@pytest.fixture
def surface():
    return RecordingSurface()
