import os

import uvicorn

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    # Single worker: the options cache and Supabase client are
    # per-process singletons, so extra workers only duplicate them.
    workers = int(os.environ.get("WEB_CONCURRENCY", 1))
    uvicorn.run(
        "vehicle_fitment.app.main:app",
        host="0.0.0.0",
        port=port,
        workers=workers,
    )
