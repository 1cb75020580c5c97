from __future__ import annotations

import asyncio
import os
import time
from datetime import date
from uuid import uuid4

import httpx


def _assert_status(response: httpx.Response, expected: int | tuple[int, ...]) -> None:
    expected_codes = (expected,) if isinstance(expected, int) else expected
    if response.status_code not in expected_codes:
        raise RuntimeError(
            f"{response.request.method} {response.request.url} expected {expected_codes}, "
            f"got {response.status_code}: {response.text}"
        )


def _auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def _wait_ok(client: httpx.AsyncClient, path: str, timeout_seconds: float = 60.0) -> None:
    deadline = time.monotonic() + timeout_seconds
    last_status = "n/a"
    last_body = ""
    while time.monotonic() < deadline:
        try:
            response = await client.get(path)
            if response.status_code == 200:
                return
            last_status = str(response.status_code)
            last_body = response.text
        except httpx.HTTPError as exc:
            last_status = "http_error"
            last_body = str(exc)
        await asyncio.sleep(1.0)
    raise RuntimeError(f"timeout waiting for {path}, last_status={last_status}, detail={last_body}")


async def _login(client: httpx.AsyncClient, badge_no: str, password: str) -> str:
    response = await client.post("/api/auth/login", json={"badgeNo": badge_no, "password": password})
    _assert_status(response, 200)
    return response.json()["data"]["token"]


async def _run() -> None:
    base_url = os.getenv("APP_BASE_URL", "http://app:8000").rstrip("/")
    admin_badge = os.getenv("SMOKE_ADMIN_BADGE", "A0001")
    admin_password = os.getenv("SMOKE_ADMIN_PASSWORD", "admin-pass")
    run_id = uuid4().hex[:8]

    timeout = httpx.Timeout(20.0)
    async with httpx.AsyncClient(base_url=base_url, timeout=timeout) as client:
        await _wait_ok(client, "/healthz")
        await _wait_ok(client, "/readyz")

        bootstrap_resp = await client.post(
            "/api/auth/bootstrap-admin",
            json={"badgeNo": admin_badge, "name": "smoke admin", "password": admin_password},
        )
        _assert_status(bootstrap_resp, (201, 409))
        admin_token = await _login(client, admin_badge, admin_password)

        me_resp = await client.get("/api/auth/me", headers=_auth_headers(admin_token))
        _assert_status(me_resp, 200)
        if "user:manage" not in me_resp.json()["data"]["permissions"]:
            raise RuntimeError("smoke admin lacks user:manage")

        roles_resp = await client.get("/api/officers/roles", headers=_auth_headers(admin_token))
        _assert_status(roles_resp, 200)
        officer_role = next(item["id"] for item in roles_resp.json()["data"] if item["code"] == "OFFICER")

        badge_no = f"S{run_id}"
        officer_resp = await client.post(
            "/api/officers",
            json={"name": f"smoke-{run_id}", "badgeNo": badge_no, "roleIds": [officer_role]},
            headers=_auth_headers(admin_token),
        )
        _assert_status(officer_resp, 201)
        officer = officer_resp.json()["data"]
        officer_token = await _login(client, badge_no, officer["initialPassword"])

        denied_resp = await client.get("/api/officers", headers=_auth_headers(officer_token))
        _assert_status(denied_resp, 403)

        log_resp = await client.post(
            "/api/daily-logs",
            json={"logDate": date.today().isoformat(), "content": "smoke patrol"},
            headers=_auth_headers(officer_token),
        )
        _assert_status(log_resp, 201)
        log_id = log_resp.json()["data"]["id"]

        today_resp = await client.get("/api/daily-logs/today", headers=_auth_headers(officer_token))
        _assert_status(today_resp, 200)
        if not today_resp.json()["data"]["hasTodayLog"]:
            raise RuntimeError("today log missing right after creation")

        duplicate_resp = await client.post(
            "/api/daily-logs",
            json={"logDate": date.today().isoformat()},
            headers=_auth_headers(officer_token),
        )
        _assert_status(duplicate_resp, 409)

        delete_resp = await client.delete(f"/api/daily-logs/{log_id}", headers=_auth_headers(officer_token))
        _assert_status(delete_resp, 200)

        stats_resp = await client.get(
            "/api/daily-logs/statistics",
            params={"dateFrom": date.today().isoformat(), "dateTo": date.today().isoformat()},
            headers=_auth_headers(officer_token),
        )
        _assert_status(stats_resp, 200)

        cases_resp = await client.get("/api/cases", headers=_auth_headers(officer_token))
        _assert_status(cases_resp, 200)

        keypop_resp = await client.post(
            "/api/key-populations",
            json={"name": f"smoke-person-{run_id}", "controlOfficerId": officer["id"]},
            headers=_auth_headers(admin_token),
        )
        _assert_status(keypop_resp, 201)
        person_id = keypop_resp.json()["data"]["id"]

        visit_resp = await client.post(
            f"/api/key-populations/{person_id}/visits",
            json={"visitDate": date.today().isoformat()},
            headers=_auth_headers(officer_token),
        )
        _assert_status(visit_resp, 201)

        person_resp = await client.get(f"/api/key-populations/{person_id}", headers=_auth_headers(officer_token))
        _assert_status(person_resp, 200)
        if person_resp.json()["data"]["latestVisitDate"] != date.today().isoformat():
            raise RuntimeError("visit did not update the latest visit date")

        delete_person_resp = await client.delete(f"/api/key-populations/{person_id}", headers=_auth_headers(admin_token))
        _assert_status(delete_person_resp, 200)

        deactivate_resp = await client.delete(f"/api/officers/{officer['id']}", headers=_auth_headers(admin_token))
        _assert_status(deactivate_resp, 200)

    print("verify_smoke: healthz/readyz + auth + officer admin + daily log + case list + key population ok")


def main() -> None:
    asyncio.run(_run())


if __name__ == "__main__":
    main()
