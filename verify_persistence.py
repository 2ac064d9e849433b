import asyncio
import time
import subprocess
import httpx
import sys
import os
import signal

from sqlalchemy import select

from backend.app.db.session import AsyncSessionLocal, engine
from backend.app.models.user import User

BASE_URL = "http://127.0.0.1:8000"
API_PREFIX = "/v1"
DEMO_SENDER = "customer@parcels.local"
SERVER_CMD = [sys.executable, "-m", "uvicorn", "backend.app.main:app", "--host", "127.0.0.1", "--port", "8000"]


def wait_for_server(retries=10, delay=2):
    url = f"{BASE_URL}/health"
    print(f"Waiting for server at {url}...")
    for _ in range(retries):
        try:
            resp = httpx.get(url)
            if resp.status_code == 200:
                print("✅ Server is up!")
                return True
        except httpx.TransportError:
            pass
        time.sleep(delay)
    print("❌ Server failed to start.")
    return False


def stop_server(proc):
    proc.send_signal(signal.SIGTERM)
    proc.wait()


async def demo_sender_id():
    async with AsyncSessionLocal() as db:
        result = await db.execute(select(User.id).where(User.email == DEMO_SENDER))
        sender_id = result.scalar_one_or_none()
    await engine.dispose()
    return sender_id


def run_verification():
    print("\n--- [Step 1] Seeding demo users ---")
    subprocess.run([sys.executable, "backend/seed_users.py"], check=True)
    sender_id = asyncio.run(demo_sender_id())
    if sender_id is None:
        raise RuntimeError(f"Seeded sender {DEMO_SENDER} not found")

    print("\n--- [Step 2] Starting Server (Initial) ---")
    proc = subprocess.Popen(
        SERVER_CMD,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env={**os.environ, "DB_ECHO": "True"}
    )

    try:
        if not wait_for_server():
            server_logs = proc.communicate(timeout=2)
            print("Server Stdout:", server_logs[0].decode())
            print("Server Stderr:", server_logs[1].decode())
            raise RuntimeError("Server start failed")

        print("\n--- [Step 3] Creating Parcel (Persistence Test) ---")
        resp = httpx.post(f"{BASE_URL}{API_PREFIX}/parcels", json={
            "sender_id": sender_id,
            "recipient_name": "Persistence Check",
            "recipient_phone": "+251911000000",
            "weight": "1.20",
            "payment_method": "cash_on_delivery",
        })
        if resp.status_code != 201:
            print(f"❌ Parcel creation failed: {resp.status_code} {resp.text}")
            raise RuntimeError("Parcel creation failed")

        parcel = resp.json()
        tracking_id = parcel["tracking_id"]
        print(f"✅ Parcel created: {tracking_id}")
    finally:
        print("\n--- [Step 4] Stopping Server ---")
        stop_server(proc)

    time.sleep(2)  # Wait for port release

    print("\n--- [Step 5] Restarting Server (Verification) ---")
    proc2 = subprocess.Popen(SERVER_CMD, stdout=subprocess.PIPE, stderr=subprocess.PIPE)

    try:
        if not wait_for_server():
            raise RuntimeError("Server restart failed")

        print("\n--- [Step 6] Tracking Parcel (Post-Restart) ---")
        resp = httpx.get(f"{BASE_URL}{API_PREFIX}/parcels/tracking/{tracking_id}")
        if resp.status_code != 200:
            print(f"❌ Lookup failed (Persistence Issue?): {resp.status_code} {resp.text}")
            raise RuntimeError("Parcel lost after restart")

        data = resp.json()
        statuses = [event["status"] for event in data["events"]]
        if data["parcel"]["id"] != parcel["id"] or statuses != ["pending"]:
            raise RuntimeError(f"Unexpected parcel state after restart: {data}")
        print("✅ Parcel and event history persisted")
    finally:
        print("\n--- [Step 7] Stopping Server ---")
        stop_server(proc2)


if __name__ == "__main__":
    run_verification()
