from .abstract import Transport
from .factory import create_transport, fetch, store

__all__ = ["Transport", "create_transport", "fetch", "store"]
