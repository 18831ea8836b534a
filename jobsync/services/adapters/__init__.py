from .http_job_api import HttpJobApi
from .sse_transport import SseDecoder, SseTransport

__all__ = ["HttpJobApi", "SseDecoder", "SseTransport"]
