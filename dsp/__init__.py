"""Docker Subdomain Proxy (DSP).

Single-host reverse proxy that watches Docker container start events and
routes ``<container-name>.<suffix>`` requests to the container's first
exposed TCP port.

 - registry: in-memory service name -> backend address map
 - registration: Docker events -> registry entries
 - gateway: hostname-based request forwarding
 - api: management endpoints (create containers, list routes, event log)
"""

__version__ = "0.1.0"
