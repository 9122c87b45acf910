import uvicorn
from dotenv import load_dotenv
import os
import sys

# Ensure current directory is in path
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from main import app

if __name__ == "__main__":
    load_dotenv()
    port = int(os.environ.get("PORT", 8787))
    print(f"==========================================")
    print(f"🚀 Paper Bankroll Manager Started")
    print(f"👉 Access at: http://localhost:{port}")
    print(f"==========================================")

    # Single worker: one process owns the ledger file
    uvicorn.run(app, host="0.0.0.0", port=port, workers=1)
