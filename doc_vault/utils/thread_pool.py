import asyncio
import functools
from concurrent.futures import ThreadPoolExecutor

# shared by storage writes, file reads and PDF parsing
IO_POOL = ThreadPoolExecutor(max_workers=8, thread_name_prefix="doc-vault-io")


def run_sync(func, *args, **kwargs) -> asyncio.Future:
    """Await a blocking call from async code without stalling the event loop."""
    loop = asyncio.get_running_loop()
    return loop.run_in_executor(IO_POOL, functools.partial(func, *args, **kwargs))
