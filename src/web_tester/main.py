import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.web_tester.api.endpoints import router as api_router, get_test_run_service
from src.web_tester.core.config import settings
from src.web_tester.core.logging_config import setup_run_logging

# --- Logging Configuration ---
setup_run_logging(log_level=settings.LOG_LEVEL, log_dir=settings.LOG_DIR)

# --- FastAPI App ---
app = FastAPI(title="Web Testing Assistant - Test Execution Engine")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- API Router ---
app.include_router(api_router)


@app.on_event("startup")
async def startup_event():
    logging.info(f"🚀 Test execution engine listening on port {settings.APP_PORT}")


@app.on_event("shutdown")
async def shutdown_event():
    get_test_run_service().shutdown()
    logging.info("Application shutdown complete.")


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=settings.APP_PORT)
