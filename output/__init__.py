"""
Output module - Topology output formatters

Contains formatters for different output formats:
- DOT (Graphviz graph description)
- Text (human-readable hierarchical report)
- JSON
"""

from .formatters import to_dot, to_json, to_text, format_issues

__all__ = ['to_dot', 'to_json', 'to_text', 'format_issues']
