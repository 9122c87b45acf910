"""
===========================================
PAPER BANKROLL MANAGER - MAIN API
===========================================
Simulated bankroll for prediction-market bets: stake planning, results,
pause controls and reports.
"""

import logging
import os

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.BankrollEngine.router import get_service, router as bankroll_router
from src.BankrollEngine.service import BankrollService

# Load environment variables (LEDGER_PATH, PORT, STAKING_STRATEGY)
load_dotenv()

logger = logging.getLogger("BankrollAPI")


# ===========================================
# FASTAPI APP
# ===========================================
app = FastAPI(
    title="Paper Bankroll Manager",
    description="Paper-trading bankroll and staking policy API",
    version="1.0.0"
)

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

app.include_router(bankroll_router)


@app.exception_handler(Exception)
async def unhandled_exception(request: Request, exc: Exception):
    """Last-resort boundary: report a generic failure, keep the process alive."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": str(exc)})


@app.get("/api/health")
def health_check(service: BankrollService = Depends(get_service)):
    """Health check for monitoring"""
    return {
        "status": "online",
        "service": "Paper Bankroll Manager",
        "ledger_path": str(getattr(service.store, "path", "memory")),
        "last_persisted": service.last_persisted,
    }


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8787))
    uvicorn.run("main:app", host="0.0.0.0", port=port, reload=True)
