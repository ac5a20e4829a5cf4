"""TaskTrail - multi-user task tracker with an audit trail."""

__version__ = "0.1.0"
