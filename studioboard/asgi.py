# studioboard/asgi.py
import sys, asyncio

# Troca o event loop no Windows ANTES de importar o resto
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from studioboard.main import app  # noqa: E402
