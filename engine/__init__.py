"""
Engine module - Visibility model and topology inference

Contains:
- expiry: Sets whose members expire
- multikey: Records reachable through several keys
- model: Devices and ports with accumulated visibility
- network: Configured network state and the poll cycle
- infer: Topology inference from accumulated visibility
- validate: Topology validation and health checks
"""

from .expiry import ExpiringSet
from .multikey import MultiKeyIndex
from .model import Device, Port
from .infer import TopologyBuilder, Topology, Node, Edge, Cluster
from .network import Network
from .validate import TopologyValidator, ValidationIssue

__all__ = [
    'ExpiringSet',
    'MultiKeyIndex',
    'Device',
    'Port',
    'TopologyBuilder',
    'Topology',
    'Node',
    'Edge',
    'Cluster',
    'Network',
    'TopologyValidator',
    'ValidationIssue',
]
