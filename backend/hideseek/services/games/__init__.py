"""Session domain services: map, registry, seeker rotation and liveness.

This package contains pure(ish) domain logic that is driven by the socket
handlers and the HTTP blueprint, keeping transport concerns separated
from the session state itself.
"""
