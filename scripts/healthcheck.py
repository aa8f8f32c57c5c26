#!/usr/bin/env python
"""Container healthcheck: exit 0 only when /healthz reports every check ok."""

import json
import os
import sys
from urllib import request, error


def main() -> int:
    host = os.getenv("HEALTHCHECK_HOST", "127.0.0.1")
    port = os.getenv("PORT", "5000")
    target = f"http://{host}:{port}/healthz"
    try:
        with request.urlopen(target, timeout=5) as resp:
            body = json.loads(resp.read().decode("utf-8") or "{}")
    except (error.URLError, ValueError) as exc:
        print(f"healthcheck failed: {exc}", file=sys.stderr)
        return 1
    return 0 if body.get("status") == "ok" else 1


if __name__ == "__main__":
    sys.exit(main())
