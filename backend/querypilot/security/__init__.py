"""
Security module initialization
"""
from querypilot.security.access_gateway import (
    AccessDecision,
    AccessGateway,
    access_gateway
)

__all__ = [
    "AccessDecision",
    "AccessGateway",
    "access_gateway"
]
