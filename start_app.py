#!/usr/bin/env python
"""Launch the storefront API under uvicorn on $PORT."""
import os

import uvicorn

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    reload = os.environ.get("RELOAD", "").lower() in ("1", "true", "yes")

    print(f"Starting storefront backend on port {port}")

    uvicorn.run(
        "storefront.main:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=port,
        reload=reload,
        log_level=os.environ.get("LOG_LEVEL", "info").lower(),
    )
