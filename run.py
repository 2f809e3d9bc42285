import os

import uvicorn

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    # Single worker: the price list and cached clients live in process
    # memory, so a reload on one worker would not reach the others.
    workers = int(os.environ.get("WEB_CONCURRENCY", 1))
    uvicorn.run(
        "agent_api.main:app",
        host="0.0.0.0",
        port=port,
        workers=workers,
    )
