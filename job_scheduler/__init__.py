"""Polling job-queue daemon: runs queued shell commands under a concurrency ceiling."""

__version__ = "0.1.0"
