"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: renderers.py
@DateTime: 2026-10-17
@Docs: Async byte streams for report downloads.
报表下载用的异步字节流。
"""

from collections.abc import AsyncIterator

DEFAULT_CHUNK_SIZE = 64 * 1024


async def render_chunks(data: bytes, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
    """Yield a finished report in pieces of at most `chunk_size` bytes.
    将生成好的报表按不超过 `chunk_size` 字节的分块逐个产出。

    Empty input yields nothing.
    输入为空时不产出任何分块。
    """
    step = max(int(chunk_size), 1)
    for start in range(0, len(data), step):
        yield data[start : start + step]


async def collect(stream: AsyncIterator[bytes]) -> bytes:
    """Drain a report stream back into one bytes object.
    将报表流重新汇总为单个 bytes。
    """
    return b"".join([chunk async for chunk in stream])
