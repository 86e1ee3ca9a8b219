"""终端聊天入口：python -m chat_core

启动时先拉取一次模型列表，然后逐行读取输入：

    /models          重新拉取模型列表
    /model <id>      切换模型
    /temp <x>        设置温度
    /system <text>   设置系统提示词（留空则清除）
    /key <key>       设置 API 密钥
    /quit            退出
"""

import asyncio

from chat_core.api import service
from chat_core.domain.exceptions import ExchangeInFlightError


HELP_TEXT = "Commands: /models, /model <id>, /temp <x>, /system <text>, /key <key>, /quit"


async def _handle_command(line: str) -> bool:
    """处理斜杠命令，返回 False 表示退出。"""

    cmd, _, arg = line.partition(" ")
    controls = service.get_controls()
    if cmd == "/quit":
        return False
    if cmd == "/models":
        await service.refresh_models()
    elif cmd == "/model":
        controls.select_model(arg)
        print(f"[info] model: {controls.model}")
    elif cmd == "/temp":
        try:
            controls.temperature = float(arg)
        except ValueError:
            print(f"[info] invalid temperature: {arg!r}")
        else:
            print(f"[info] temperature: {controls.temperature}")
    elif cmd == "/system":
        controls.system_prompt = arg.strip()
        print("[info] system prompt " + ("set" if controls.system_prompt else "cleared"))
    elif cmd == "/key":
        service.set_api_key(arg)
        print("[info] API key " + ("set" if service.get_api_key() else "cleared"))
    else:
        print(f"[info] {HELP_TEXT}")
    return True


async def run_console() -> None:
    service.get_default_session()
    print(f"[info] {HELP_TEXT}")
    await service.refresh_models()
    while True:
        try:
            line = await asyncio.to_thread(input, "> ")
        except EOFError:
            break
        line = line.strip()
        if not line:
            continue
        if line.startswith("/"):
            if not await _handle_command(line):
                break
            continue
        try:
            await service.send_chat(line)
        except ExchangeInFlightError as e:
            print(f"[info] {e.message}")


def main() -> None:
    try:
        asyncio.run(run_console())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
