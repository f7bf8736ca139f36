#!/usr/bin/env python3
"""
Smoke test for a running MedTrack server.

Logs in as each seeded test user (see ``manage.py ensure_test_users``),
calls the endpoints that role may use and reports failures.  Set
``MEDTRACK_URL`` to point it somewhere other than the local dev server.
"""
import os
import sys
import time
from dataclasses import dataclass
from datetime import date
from typing import Optional

import requests

BASE_URL = os.getenv("MEDTRACK_URL", "http://127.0.0.1:8000")

TEST_USERS = {
    "admin": {"username": "admin1", "password": "123456"},
    "mr": {"username": "mr1", "password": "123456"},
}


@dataclass
class CheckResult:
    success: bool
    endpoint: str
    method: str
    status_code: int
    response_time: float
    error_message: str = ""
    description: str = ""
    user_role: str = ""


class SmokeTester:
    def __init__(self):
        self.session = requests.Session()
        self.headers = {}
        self.current_role = None
        self.results: list[CheckResult] = []

    @property
    def failures(self) -> list[CheckResult]:
        return [r for r in self.results if not r.success]

    def login(self, role: str) -> bool:
        user = TEST_USERS[role]
        print(f"logging in as {user['username']} ({role})...")
        resp = self.check("POST", "/api/auth/login", user, description=f"{role} login")
        if resp is None or resp.status_code != 200:
            return False
        self.headers = {"Authorization": f"Token {resp.json()['token']}"}
        self.current_role = role
        return True

    def check(self, method: str, endpoint: str, data: Optional[dict] = None,
              expected_status: int = 200, description: str = "") -> Optional[requests.Response]:
        """Call one endpoint and record whether it answered with ``expected_status``."""
        url = f"{BASE_URL}{endpoint}"
        start = time.time()
        try:
            resp = self.session.request(method, url, json=data, headers=self.headers, timeout=10)
        except requests.RequestException as e:
            self.results.append(CheckResult(False, endpoint, method, 0, time.time() - start,
                                            str(e), description, self.current_role or ""))
            print(f"  x {method} {endpoint}: {e}")
            return None
        elapsed = time.time() - start
        ok = resp.status_code == expected_status
        self.results.append(CheckResult(ok, endpoint, method, resp.status_code, elapsed,
                                        "" if ok else resp.text[:200], description,
                                        self.current_role or ""))
        mark = "ok" if ok else "x "
        print(f"  {mark} {method} {endpoint} -> {resp.status_code} ({elapsed:.2f}s)")
        return resp

    def run_mr(self):
        if not self.login("mr"):
            return
        self.check("GET", "/api/auth/me")
        self.check("GET", "/healthz")
        doctors = self.check("GET", "/api/doctors")
        medicines = self.check("GET", "/api/medicines")
        self.check("GET", "/api/medicines?q=tab")
        self.check("GET", "/api/mr/dashboard")
        self.check("GET", "/api/visits/my")
        self.check("GET", "/api/admin/dashboard", expected_status=403, description="admin only")

        if not (doctors and medicines and doctors.ok and medicines.ok):
            return
        doctor_list = doctors.json()["data"]
        medicine_list = medicines.json()["data"]
        if not doctor_list or not medicine_list:
            print("  (no doctors or medicines seeded; skipping visit submit)")
            return
        orders = [{"medicineId": medicine_list[0]["id"], "quantity": 2}]
        self.check("POST", "/api/visits/preview", {"orders": orders})
        self.check("POST", "/api/visits/submit", {
            "doctorId": doctor_list[0]["id"],
            "hospital": doctor_list[0]["hospital"] or "Smoke Test Clinic",
            "date": date.today().isoformat(),
            "notes": "smoke test",
            "orders": orders,
        }, expected_status=201)
        self.check("POST", "/api/visits/submit", {
            "doctorId": doctor_list[0]["id"],
            "hospital": "Smoke Test Clinic",
            "date": date.today().isoformat(),
            "orders": [],
        }, expected_status=400, description="empty orders rejected")

    def run_admin(self):
        if not self.login("admin"):
            return
        dash = self.check("GET", "/api/admin/dashboard")
        created = self.check("POST", "/api/medicines/create", {
            "name": "Smoke Tab", "category": "Test", "dosage": "1mg", "price": "1.00",
        }, expected_status=201)
        if created is not None and created.status_code == 201:
            med_id = created.json()["data"]["id"]
            self.check("POST", f"/api/medicines/{med_id}/update", {
                "name": "Smoke Tab", "category": "Test", "dosage": "1mg", "price": "2.00",
            })
            self.check("POST", f"/api/medicines/{med_id}/delete")
        self.check("POST", "/api/admin/approvals/approve", {"id": 1, "kind": "Invoice"},
                   expected_status=400, description="unknown kind")
        if dash is not None and dash.ok:
            pending = [e for e in dash.json()["pendingApprovals"] if e["kind"] == "Visit"]
            if pending:
                self.check("POST", "/api/admin/approvals/approve", {"id": pending[0]["id"], "kind": "Visit"})
        self.check("POST", "/api/auth/logout")

    def report(self) -> int:
        total = len(self.results)
        failed = self.failures
        print(f"\n{total - len(failed)}/{total} checks passed")
        for r in failed:
            print(f"  [{r.user_role}] {r.method} {r.endpoint}: {r.status_code} {r.error_message}")
        return 1 if failed else 0


def main() -> int:
    tester = SmokeTester()
    tester.run_mr()
    tester.run_admin()
    return tester.report()


if __name__ == "__main__":
    sys.exit(main())
