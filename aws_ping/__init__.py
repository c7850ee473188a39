"""EC2-backed cluster membership discovery (AWS_PING)."""

__version__ = "0.1.0"
