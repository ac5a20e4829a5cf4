#!/usr/bin/env python3
"""Golden path demo for TaskTrail (admin + user walkthrough)."""

from __future__ import annotations

import json
import os
import sys
from typing import Any
from urllib.error import HTTPError
from urllib.parse import urlencode
from urllib.request import Request, urlopen


def _env(name: str, default: str | None = None) -> str | None:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return value


class ApiError(RuntimeError):
    def __init__(self, message: str, status: int) -> None:
        super().__init__(message)
        self.status = status


class HttpClient:
    def __init__(self, base_url: str, token: str | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.headers: dict[str, str] = {"Content-Type": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    def with_token(self, token: str) -> "HttpClient":
        return HttpClient(self.base_url, token=token)

    def request_json(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        query: dict[str, Any] | None = None,
        timeout: float = 10.0,
    ) -> Any:
        url = f"{self.base_url}{path}"
        if query:
            query = {k: v for k, v in query.items() if v is not None}
            if query:
                url = f"{url}?{urlencode(query)}"

        data = None
        if payload is not None:
            data = json.dumps(payload, default=str).encode("utf-8")

        req = Request(url, data=data, method=method)
        for key, value in self.headers.items():
            req.add_header(key, value)

        try:
            with urlopen(req, timeout=timeout) as response:
                raw = response.read()
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")
            raise ApiError(
                f"{method} {url} failed: {exc.code} {exc.reason}: {detail}", exc.code
            ) from None

        if not raw:
            return {}
        return json.loads(raw.decode("utf-8"))

    def status_of(self, method: str, path: str, payload: dict[str, Any] | None = None) -> int:
        """Issue a request and return only the HTTP status code."""
        try:
            self.request_json(method, path, payload=payload)
        except ApiError as exc:
            return exc.status
        return 200


def login(client: HttpClient, email: str, password: str) -> HttpClient:
    resp = client.request_json("POST", "/auth/login", payload={"email": email, "password": password})
    print(f"Logged in as {resp['user']['email']} ({resp['user']['role']})")
    return client.with_token(resp["token"])


def main() -> int:
    base_url = _env("TASKTRAIL_URL", "http://localhost:5000")
    admin_email = _env("TASKTRAIL_ADMIN_EMAIL", "admin@example.com")
    admin_password = _env("TASKTRAIL_ADMIN_PASSWORD", "adminpassword")
    user_email = _env("TASKTRAIL_USER_EMAIL", "user@example.com")
    user_password = _env("TASKTRAIL_USER_PASSWORD", "userpassword")

    anon = HttpClient(base_url)

    print("Checking health...")
    health = anon.request_json("GET", "/health")
    if health.get("status") != "healthy":
        raise RuntimeError(f"Unexpected health response: {health}")

    admin = login(anon, admin_email, admin_password)
    user = login(anon, user_email, user_password)

    print("Creating task...")
    task = admin.request_json(
        "POST",
        "/tasks",
        payload={"title": "Golden path task", "description": "Walk the happy path"},
    )
    task_id = task["id"]
    print(f"Task created: {task_id}")

    print("User renames and completes the task...")
    task = user.request_json(
        "PUT",
        f"/tasks/{task_id}",
        payload={"title": "Golden path task (done)", "status": "completed"},
    )
    if task.get("status") != "completed":
        raise RuntimeError(f"Task not completed: {task}")

    print("User tries to reopen the task...")
    code = user.status_of("PUT", f"/tasks/{task_id}", payload={"status": "pending"})
    if code != 403:
        raise RuntimeError(f"Expected 403 when a user reopens a task, got {code}")

    print("Admin reopens and deletes the task...")
    admin.request_json("PUT", f"/tasks/{task_id}", payload={"status": "pending"})
    admin.request_json("DELETE", f"/tasks/{task_id}")

    activity = admin.request_json("GET", "/activities", query={"page": 1, "limit": 10})
    for log in activity["logs"]:
        print(f"  {log['action']:<6} {log['task_title']!r:<30} {log['details']}")

    labels = {log["task_title"] for log in activity["logs"] if log["entity_id"] == task_id}
    if labels != {"Golden path task (done)"}:
        raise RuntimeError(f"Deleted task should keep its last title, got {labels}")

    print("Golden path complete: task created, completed, reopened, deleted, history labelled.")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        raise
