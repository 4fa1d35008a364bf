import sys, asyncio
if sys.platform.startswith("win"):
    # loop compatível ANTES de o uvicorn criar o seu
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "studioboard.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
