from .job_api import JobApi
from .push_transport import PushTransport

__all__ = ["JobApi", "PushTransport"]
