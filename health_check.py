#!/usr/bin/env python3
"""
Health check script for the mp3queue download backend
"""

import sys
import requests
from mp3queue.env import BACKEND_URL

def check_backend_connectivity():
    """Check if the download backend is reachable"""
    try:
        response = requests.get(f"{BACKEND_URL.rstrip('/')}/list-downloads", timeout=10)
        if response.status_code == 200:
            files = response.json().get("files") or []
            return True, f"Backend connectivity OK ({len(files)} file(s) on server)"
        else:
            return False, f"Backend returned status {response.status_code}"

    except (requests.RequestException, ValueError) as e:
        return False, f"Backend connectivity error: {e}"

def check_dependencies():
    """Check that the runtime packages import"""
    try:
        import dotenv  # noqa: F401
        import httpx  # noqa: F401
        return True, "All required packages available"
    except ImportError as e:
        return False, f"Missing package: {e}"

def main():
    """Run health checks"""
    print("mp3queue Health Check")
    print("=" * 40)

    all_good = True

    backend_ok, backend_msg = check_backend_connectivity()
    print(f"Backend ({BACKEND_URL}): {'✓' if backend_ok else '✗'} {backend_msg}")
    if not backend_ok:
        all_good = False

    deps_ok, deps_msg = check_dependencies()
    print(f"Dependencies: {'✓' if deps_ok else '✗'} {deps_msg}")
    if not deps_ok:
        all_good = False

    print("=" * 40)
    if all_good:
        print("Health Check: ✓ All systems ready")
        sys.exit(0)
    else:
        print("Health Check: ✗ Some issues detected")
        sys.exit(1)

if __name__ == "__main__":
    main()
