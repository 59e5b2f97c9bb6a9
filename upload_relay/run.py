"""Run script for the upload relay service"""

import uvicorn

from upload_relay.app.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "upload_relay.app.main:app",
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
