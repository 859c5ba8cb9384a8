"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Race for the same room and dates
  locust -f locustfile.py --tags throughput   # Test search cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import random
import string
from datetime import date, timedelta

from locust import HttpUser, task, between, tag

# Shared state
ROOM_IDS = []
CONCURRENCY_ROOM_ID = None
PASSWORD = "test123"

ROOM_PAYLOAD = {
    "title": "Load test studio",
    "description": "Bright studio used by the booking race scenario.",
    "type": "STUDIO",
    "price": "1500",
    "size": "320",
    "location": "Thamel",
    "address": "Thamel Marg 12",
    "city": "Kathmandu",
    "state": "Bagmati",
    "zip_code": "44600",
    "max_guests": 2,
}


def random_email():
    return f"load_{random.randint(10000, 99999)}_{random.randint(0, 999)}@test.com"


def random_name():
    return "u_" + "".join(random.choices(string.ascii_lowercase, k=8))


def sign_up(client, role="TENANT"):
    """Register and log in a fresh user, returning auth headers (empty on failure)."""
    email = random_email()
    client.post("/api/v1/auth/register", json={
        "email": email,
        "name": random_name(),
        "password": PASSWORD,
        "role": role,
    })
    resp = client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
    if resp.status_code != 200:
        return {}
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - many tenants, one room, the same dates

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify no two active bookings overlap:
      SELECT COUNT(*) FROM bookings
      WHERE room_id = X AND status IN ('PENDING', 'CONFIRMED');
    Should be exactly 1
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        global CONCURRENCY_ROOM_ID
        if CONCURRENCY_ROOM_ID is None:
            landlord = sign_up(self.client, role="LANDLORD")
            resp = self.client.post("/api/v1/rooms/", json=ROOM_PAYLOAD, headers=landlord)
            if resp.status_code == 201:
                CONCURRENCY_ROOM_ID = resp.json()["id"]
                print(f"\nCreated room {CONCURRENCY_ROOM_ID} for the booking race\n")
        self.headers = sign_up(self.client)

    @tag("concurrency")
    @task
    def book_same_dates(self):
        """Every tenant requests the same stay; only one may win."""
        if not CONCURRENCY_ROOM_ID or not self.headers:
            return

        check_in = date.today() + timedelta(days=30)
        with self.client.post("/api/v1/bookings/",
            json={
                "room_id": CONCURRENCY_ROOM_ID,
                "check_in": check_in.isoformat(),
                "check_out": (check_in + timedelta(days=3)).isoformat(),
                "guests": 1,
            },
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()  # 409: DATE_CONFLICT, someone else got it
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - Search cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: Stop Redis, run again
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def search_rooms_cached(self):
        page = random.randint(1, 5)
        resp = self.client.get(f"/api/v1/rooms/?page={page}&city=Kathmandu",
            name="/api/v1/rooms/ [cached]")
        if resp.status_code == 200:
            for room in resp.json().get("rooms", []):
                if room["id"] not in ROOM_IDS:
                    ROOM_IDS.append(room["id"])

    @tag("throughput", "read")
    @task(3)
    def get_room_detail(self):
        if ROOM_IDS:
            self.client.get(f"/api/v1/rooms/{random.choice(ROOM_IDS)}",
                name="/api/v1/rooms/{id}")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = sign_up(self.client)

    def _expect(self, payload, allowed, headers=None):
        with self.client.post("/api/v1/bookings/",
            json=payload,
            headers=self.headers if headers is None else headers,
            catch_response=True
        ) as resp:
            if resp.status_code in allowed:
                resp.success()
            else:
                resp.failure(f"Expected {allowed}, got {resp.status_code}")

    def _stay(self, **overrides):
        check_in = date.today() + timedelta(days=60)
        payload = {
            "room_id": ROOM_IDS[0] if ROOM_IDS else 1,
            "check_in": check_in.isoformat(),
            "check_out": (check_in + timedelta(days=2)).isoformat(),
            "guests": 1,
        }
        payload.update(overrides)
        return payload

    @tag("edge")
    @task
    def unknown_room(self):
        self._expect(self._stay(room_id=999999), (404,))

    @tag("edge")
    @task
    def reversed_dates(self):
        check_in = date.today() + timedelta(days=10)
        self._expect(
            self._stay(check_in=check_in.isoformat(), check_out=(check_in - timedelta(days=2)).isoformat()),
            (400, 404, 409),
        )

    @tag("edge")
    @task
    def zero_guests(self):
        self._expect(self._stay(guests=0), (422,))

    @tag("edge")
    @task
    def huge_party(self):
        self._expect(self._stay(guests=999), (400, 404, 409))

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/v1/bookings/",
            data="not json at all",
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code in (400, 422):
                resp.success()
            else:
                resp.failure(f"Expected 400/422, got {resp.status_code}")

    @tag("edge")
    @task
    def missing_auth(self):
        self._expect(self._stay(), (401,), headers={})
