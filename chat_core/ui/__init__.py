"""渲染层：RenderingSurface 协议与终端实现。"""
