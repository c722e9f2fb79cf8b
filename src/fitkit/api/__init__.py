"""Service assembly for the ML REST surface."""

from .service_builder import MLServiceBuilder, ServiceInfo

__all__ = ["MLServiceBuilder", "ServiceInfo"]
