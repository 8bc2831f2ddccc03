from __future__ import annotations

from typing import Any

from fastapi.testclient import TestClient

from main import app


def _count_json(value: Any) -> int:
    if isinstance(value, list):
        return len(value)
    if isinstance(value, dict):
        for key in ("assignments", "allocations"):
            if key in value and isinstance(value[key], list):
                return len(value[key])
        return len(value)
    return 1


def _payload(resp) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text


def main() -> None:
    client = TestClient(app)

    checks = [
        "/health",
        "/api/settings/",
        "/api/settings/can-edit-preferences",
        "/api/titles/",
        "/api/preferences/",
        "/api/custom-titles/",
        "/api/capacity-conflicts/conflicts",
        "/api/allocations/",
        "/api/allocations/stats",
        "/api/allocations/runs",
        "/api/second-markers/assignments",
    ]

    for path in checks:
        resp = client.get(path)
        payload = _payload(resp)
        if resp.status_code >= 400:
            raise SystemExit(f"FAIL {path}: {resp.status_code} {payload}")

        if path == "/health" or path.endswith("/stats"):
            print(f"OK {path}: {payload}")
        else:
            print(f"OK {path}: count={_count_json(payload)}")

    # Allocation smoke: an empty dataset must come back as a clean 400 (NO_PREFERENCES /
    # NO_APPROVED_TITLES), never a crash.
    resp = client.post("/api/allocations/run")
    payload = _payload(resp)
    if resp.status_code == 400 and isinstance(payload, dict):
        print(f"OK /api/allocations/run: rejected code={payload.get('code')}")
        return
    if resp.status_code >= 400:
        raise SystemExit(f"FAIL /api/allocations/run: {resp.status_code} {payload}")

    stats = payload.get("statistics", {}) if isinstance(payload, dict) else {}
    print(
        "OK /api/allocations/run: "
        f"run_id={payload.get('run_id')} "
        f"custom={stats.get('students_with_approved_custom_titles')} "
        f"matched={stats.get('students_with_regular_allocations')} "
        f"unallocated={stats.get('unallocated_students')}"
    )

    resp = client.post("/api/second-markers/assign")
    payload = _payload(resp)
    if resp.status_code >= 400:
        raise SystemExit(f"FAIL /api/second-markers/assign: {resp.status_code} {payload}")
    statistics = payload.get("statistics", {}) if isinstance(payload, dict) else {}
    print(
        "OK /api/second-markers/assign: "
        f"assigned={statistics.get('total_assignments')} unassigned={statistics.get('unassigned')}"
    )


if __name__ == "__main__":
    main()
