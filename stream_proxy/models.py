from typing import Optional
from pydantic import BaseModel

class ProxyRequest(BaseModel):
    url: str
    range: Optional[str] = None   # raw Range header, forwarded verbatim

class HealthStatus(BaseModel):
    status: str = "ok"
