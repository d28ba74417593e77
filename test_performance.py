"""
Performance test script for /v1/upload.

Uploads are acknowledged before the import runs, so acknowledgement latency
should stay flat regardless of file size. Checks p50 < 250ms and then polls
the last import until it finishes.
"""

import httpx
import time
import statistics
from typing import List, Optional

from policy_import.data.generate_policies import generate_csv

API_URL = "http://localhost:8000"

def send_upload(client, payload: bytes, name: str):
    """Send a single upload and return timing + response."""
    start = time.time()
    try:
        response = client.post(
            f"{API_URL}/v1/upload",
            files={"file": (name, payload, "text/csv")},
            timeout=10.0
        )
        elapsed_ms = (time.time() - start) * 1000
        return {
            "success": response.status_code == 202,
            "status_code": response.status_code,
            "elapsed_ms": elapsed_ms,
            "server_time": response.headers.get("X-Response-Time-Ms"),
            "response_data": response.json() if response.status_code == 202 else None,
            "error": response.text if response.status_code != 202 else None
        }
    except Exception as e:
        elapsed_ms = (time.time() - start) * 1000
        return {
            "success": False,
            "status_code": None,
            "elapsed_ms": elapsed_ms,
            "server_time": None,
            "response_data": None,
            "error": str(e)
        }

def measure_upload_latency(num_requests: int = 20, rows_per_file: int = 2000):
    """
    Upload the same generated export repeatedly.

    Returns:
        Tuple of (response times in ms, last import id)
    """
    payload = generate_csv(rows_per_file).encode("utf-8")
    times: List[float] = []
    last_import_id: Optional[str] = None

    print(f"Running {num_requests} uploads of {rows_per_file} rows ({len(payload)} bytes)...")
    print("=" * 60)

    with httpx.Client() as client:
        for i in range(num_requests):
            result = send_upload(client, payload, f"perf-{i}.csv")
            if result["success"]:
                times.append(result["elapsed_ms"])
                last_import_id = result["response_data"]["import_id"]
                if i % 5 == 0:
                    print(f"Upload {i+1}: {result['elapsed_ms']:.2f}ms (server: {result['server_time']}ms)")
            else:
                print(f"Upload {i+1} FAILED: {result['status_code']} {(result['error'] or '')[:200]}")

    return times, last_import_id

def wait_for_import(import_id: str, timeout_s: float = 300.0):
    """Poll an import until it leaves the running state."""
    deadline = time.time() + timeout_s
    while time.time() < deadline:
        status = httpx.get(f"{API_URL}/v1/imports/{import_id}", timeout=5.0).json()
        if status["state"] != "running":
            return status
        print(f"  {status['processed']}/{status['total'] or '?'} processed")
        time.sleep(2)
    return None

def calculate_percentiles(times: List[float]) -> dict:
    """Calculate performance percentiles."""
    if not times:
        return {}

    sorted_times = sorted(times)

    return {
        "count": len(times),
        "min": min(times),
        "max": max(times),
        "mean": statistics.mean(times),
        "p50": sorted_times[int(len(sorted_times) * 0.50)],
        "p95": sorted_times[int(len(sorted_times) * 0.95)],
    }

def main():
    """Run performance tests."""
    print("Policy Import API - Upload Performance Test")
    print("=" * 60)

    try:
        httpx.get(f"{API_URL}/health", timeout=2.0).raise_for_status()
    except httpx.HTTPError as e:
        print(f"✗ Server not responding: {e}")
        return

    times, last_import_id = measure_upload_latency()
    if not times:
        print("✗ No successful uploads")
        return

    stats = calculate_percentiles(times)
    print()
    print("=" * 60)
    print(f"Uploads acknowledged: {stats['count']}")
    print(f"Min:  {stats['min']:.2f} ms")
    print(f"Mean: {stats['mean']:.2f} ms")
    print(f"p50:  {stats['p50']:.2f} ms")
    print(f"p95:  {stats['p95']:.2f} ms")
    print(f"Max:  {stats['max']:.2f} ms")

    target_p50 = 250.0
    if stats['p50'] < target_p50:
        print(f"✓ PASS: p50 ({stats['p50']:.2f}ms) < {target_p50}ms target")
    else:
        print(f"✗ FAIL: p50 ({stats['p50']:.2f}ms) >= {target_p50}ms target")

    print()
    print(f"Waiting for import {last_import_id}...")
    final = wait_for_import(last_import_id)
    if final is None:
        print("✗ Import did not finish in time")
    else:
        print(f"Import {final['state']}: {final['processed']}/{final['total']} processed, {final['errors']} errors")
    print("=" * 60)

if __name__ == "__main__":
    main()
