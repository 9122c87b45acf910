"""
Smoke check against a running server (python production_server.py).
Uses preview plans only, so the live ledger is left as it was, apart from
the exposure rollover.
"""
import os
import sys

import requests

BASE_URL = os.getenv("BANKROLL_URL", "http://127.0.0.1:8787")


def run_checks() -> int:
    print("Running smoke checks against", BASE_URL)
    failures = 0

    # 1. Healthcheck
    try:
        r = requests.get(f"{BASE_URL}/api/health", timeout=5)
        assert r.status_code == 200, f"Health check failed: {r.status_code}"
        print("✅ Healthcheck OK")
    except Exception as e:
        print("❌ Healthcheck failed:", e)
        failures += 1

    # 2. Status projection
    try:
        r = requests.get(f"{BASE_URL}/bankroll/status", timeout=5)
        assert r.status_code == 200
        status = r.json()
        assert "bankroll" in status and "streak" in status
        print(f"✅ Status OK: bankroll {status['bankroll']} | paused {status['paused']}")
    except Exception as e:
        print("❌ Status failed:", e)
        failures += 1

    # 3. Preview plan
    try:
        r = requests.post(f"{BASE_URL}/bankroll/plan", json={"preview": True}, timeout=5)
        assert r.status_code == 200
        plan = r.json()
        print(f"✅ Preview plan: stake {plan['stake']} @ {plan['odds']} (paused={plan['paused']})")
    except Exception as e:
        print("❌ Preview plan failed:", e)
        failures += 1

    # 4. Validation rejects a bad result
    try:
        r = requests.post(f"{BASE_URL}/bankroll/result", json={"result": "maybe"}, timeout=5)
        assert r.status_code == 400, f"Expected 400, got {r.status_code}"
        print("✅ Invalid result rejected")
    except Exception as e:
        print("❌ Validation check failed:", e)
        failures += 1

    return failures


if __name__ == "__main__":
    sys.exit(1 if run_checks() else 0)
