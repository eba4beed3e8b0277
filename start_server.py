#!/usr/bin/env python3
"""
Run the Llama.io API under uvicorn using the values in llamaio.config.settings
"""

import uvicorn

from llamaio.config.settings import settings


def main():
    reconcile = (
        f"every {settings.RECONCILE_INTERVAL_MINUTES} minute(s)"
        if settings.RECONCILE_INTERVAL_MINUTES > 0
        else "on demand only"
    )
    print(f"Llama.io API on http://{settings.HOST}:{settings.PORT}")
    print(f"  database:   {settings.DATABASE_URL}")
    print(f"  reconciler: {reconcile}")
    print(f"  reload:     {settings.RELOAD}")

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
