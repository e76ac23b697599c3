#!/usr/bin/env python3
"""Smoke test of the content files API against a running server and real storage."""
import sys
import uuid
import requests

API_BASE = "http://localhost:8000"


def check_health():
    """Test that API is responding."""
    print("0. Checking API health...")
    try:
        response = requests.get(f"{API_BASE}/healthz", timeout=5)
        response.raise_for_status()
        print("   ✅ API is healthy")
        return True
    except requests.RequestException as e:
        print(f"   ❌ API health check failed: {e}")
        print("   💡 Make sure API is running: uvicorn app.main:app")
        return False


def run_roundtrip():
    """Upload, list, replace, download and delete one file."""
    container = f"smoke-{uuid.uuid4().hex[:8]}"
    url = f"{API_BASE}/api/v1/{container}/contentfiles/sample.txt"

    print(f"1. Uploading sample.txt into {container}...")
    response = requests.put(url, files={"formFile": ("sample.txt", b"first version", "text/plain")}, timeout=10)
    if response.status_code != 201:
        print(f"   ❌ Upload returned {response.status_code}: {response.text}")
        return False
    print(f"   ✅ Created at {response.headers.get('Location')}")

    print("2. Listing container...")
    response = requests.get(f"{API_BASE}/api/v1/{container}/contentfiles", timeout=10)
    if response.json() != ["sample.txt"]:
        print(f"   ❌ Unexpected listing: {response.text}")
        return False
    print("   ✅ Listing contains sample.txt")

    print("3. Replacing content...")
    response = requests.patch(url, files={"formFile": ("sample.txt", b"second version", "text/plain")}, timeout=10)
    if response.status_code != 204:
        print(f"   ❌ Update returned {response.status_code}: {response.text}")
        return False

    print("4. Downloading...")
    response = requests.get(url, timeout=10)
    if response.content != b"second version":
        print(f"   ❌ Unexpected content: {response.content!r}")
        return False
    print(f"   ✅ Got {len(response.content)} bytes ({response.headers.get('content-type')})")

    print("5. Deleting...")
    response = requests.delete(url, timeout=10)
    if response.status_code != 204:
        print(f"   ❌ Delete returned {response.status_code}: {response.text}")
        return False
    response = requests.get(url, timeout=10)
    if response.status_code != 404:
        print(f"   ❌ Deleted file still served ({response.status_code})")
        return False
    print("   ✅ File gone")
    return True


def main():
    if not check_health():
        return 1

    if run_roundtrip():
        print("\n🎉 Smoke test PASSED!")
        return 0
    print("\n💥 Smoke test FAILED!")
    print("- Check API logs for upload_failed / download_failed events")
    print("- Check STORAGE_TYPE and the matching credentials")
    return 1


if __name__ == "__main__":
    sys.exit(main())
