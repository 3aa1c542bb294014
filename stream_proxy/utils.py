from typing import Dict, Optional
import httpx

# Upstream response headers relayed to the client. Everything else is dropped.
PASSTHROUGH_HEADERS = ("Content-Type", "Content-Length", "Accept-Ranges", "Content-Range")

def upstream_request_headers(range_header: Optional[str]) -> Dict[str, str]:
    """Headers for the outbound GET. Range goes through untouched."""
    # Ask for the raw representation so byte offsets and Content-Length match what we relay.
    headers = {"Accept-Encoding": "identity"}
    if range_header:
        headers["Range"] = range_header
    return headers

def passthrough_headers(upstream: httpx.Response) -> Dict[str, str]:
    out = {}
    for k in PASSTHROUGH_HEADERS:
        v = upstream.headers.get(k)
        if v is not None:
            out[k] = v
    return out
