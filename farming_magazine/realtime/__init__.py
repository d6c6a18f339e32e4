"""Realtime infrastructure (WebSocket notifications).

This package holds the connection registry and its WebSocket transport so
notifications, admin alerts and site-wide broadcasts share one socket
endpoint.
"""
