#!/usr/bin/env python3
"""Smoke check against a running Result Checker API.

Usage:
  1. Start the server: python -m result_checker
  2. Run: python scripts/verify_api.py [base_url]   (default http://localhost:5050)

Steps:
  Step 1: Banner and health
  Step 2: Add a student and list students
  Step 3: Add a result and read it back
  Step 4: Unknown result -> 404
  Step 5: Invalid payloads -> 400

Step 3 writes a result with a random id, so it is safe to rerun.
"""

import asyncio
import sys
import uuid

import httpx


def step_header(n: int, title: str) -> None:
    print(f"\n{'='*60}")
    print(f"  Step {n}: {title}")
    print(f"{'='*60}\n")


def ok(msg: str) -> None:
    print(f"  ✅ {msg}")


def fail(msg: str) -> None:
    print(f"  ❌ {msg}")


async def step1_health(client: httpx.AsyncClient) -> bool:
    step_header(1, "Banner and Health")
    resp = await client.get("/")
    if resp.status_code != 200:
        fail(f"GET / returned {resp.status_code}")
        return False
    ok(f"Banner: {resp.text}")

    resp = await client.get("/health")
    data = resp.json()
    if resp.status_code != 200:
        fail(f"Unhealthy: {data.get('error')}")
        return False
    ok(f"MongoDB: {data['services']['mongodb']} | Redis: {data['services']['redis']}")
    return True


async def step2_students(client: httpx.AsyncClient, student_id: str) -> bool:
    step_header(2, "Students")
    resp = await client.post("/addStudent", json={"id": student_id, "name": "Smoke Test"})
    if resp.status_code != 201:
        fail(f"POST /addStudent returned {resp.status_code}: {resp.text}")
        return False
    ok(f"Student added: {resp.json()['id']}")

    resp = await client.get("/getStudents")
    students = resp.json()
    if not any(s.get("id") == student_id for s in students):
        fail("New student missing from /getStudents")
        return False
    ok(f"{len(students)} students listed")
    return True


async def step3_results(client: httpx.AsyncClient, student_id: str) -> bool:
    step_header(3, "Results")
    resp = await client.post("/addResult", json={"id": student_id, "subjects": {"math": 90}})
    if resp.status_code != 201:
        fail(f"POST /addResult returned {resp.status_code}: {resp.text}")
        return False
    ok(f"Result added: {resp.json()['id']}")

    resp = await client.get(f"/result/{student_id}")
    if resp.status_code != 200 or resp.json().get("subjects", {}).get("math") != 90:
        fail(f"GET /result/{student_id} returned {resp.status_code}: {resp.text}")
        return False
    ok("Result read back (served from cache)")
    return True


async def step4_not_found(client: httpx.AsyncClient) -> bool:
    step_header(4, "Unknown Result")
    resp = await client.get(f"/result/UNKNOWN-{uuid.uuid4().hex}")
    if resp.status_code != 404:
        fail(f"Expected 404, got {resp.status_code}")
        return False
    ok(f"404: {resp.json()['error']}")
    return True


async def step5_invalid(client: httpx.AsyncClient) -> bool:
    step_header(5, "Invalid Payloads")
    passed = True
    for path in ("/addStudent", "/addResult"):
        resp = await client.post(path, json={})
        if resp.status_code == 400:
            ok(f"{path}: 400 {resp.json()['error']}")
        else:
            fail(f"{path}: expected 400, got {resp.status_code}")
            passed = False
    return passed


async def main():
    base_url = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:5050"
    student_id = f"SMOKE-{uuid.uuid4().hex[:8]}"
    print(f"\nTarget: {base_url}")

    results = {}
    async with httpx.AsyncClient(base_url=base_url, timeout=10) as client:
        try:
            results[1] = await step1_health(client)
        except httpx.TransportError as e:
            fail(f"Server unreachable: {e}")
            sys.exit(1)

        results[2] = await step2_students(client, student_id)
        results[3] = await step3_results(client, student_id)
        results[4] = await step4_not_found(client)
        results[5] = await step5_invalid(client)

    # Summary
    print(f"\n{'='*60}")
    print("  SUMMARY")
    print(f"{'='*60}")
    for step_n, passed in sorted(results.items()):
        status = "✅ PASS" if passed else "❌ FAIL"
        print(f"  Step {step_n}: {status}")

    total_passed = sum(1 for v in results.values() if v)
    print(f"\n  {total_passed}/{len(results)} steps passed")
    print(f"{'='*60}\n")

    sys.exit(0 if all(results.values()) else 1)


if __name__ == "__main__":
    asyncio.run(main())
