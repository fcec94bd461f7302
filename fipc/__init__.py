"""Floating IP Controller (FIPC).

Keeps one Hetzner Cloud floating IP pointed at the server that backs the
Kubernetes node this process runs on:
 - resolve the node's internal address from the cluster
 - find the cloud server owning that address
 - find the floating IP and re-assign it when it points elsewhere

Every cycle rediscovers all state; nothing is kept across restarts.
"""

__version__ = "0.0.1"
