"""Run FastAPI server for SMS Verify."""

import os

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "sms_verify.api.app:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8787")),
        reload=os.getenv("RELOAD", "false").lower() == "true",
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
