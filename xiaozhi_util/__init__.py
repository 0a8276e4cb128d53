"""Thread-safe byte buffer, AES-CTR helpers, a resource pool and logging."""

__version__ = "0.1.0"
__all__ = ["buffer", "encryption", "logger", "resource_pool"]