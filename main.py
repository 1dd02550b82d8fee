import os

import uvicorn

from gallery.core.config import settings


def main():
    if settings.debug:
        os.environ["PYTHONASYNCIODEBUG"] = "1"

    uvicorn.run(
        app="gallery.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        reload=settings.reload_uvicorn,
        workers=settings.workers_count,
    )


if __name__ == "__main__":
    main()
