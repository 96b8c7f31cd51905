"""
Observability module for habitca.

This module provides:
- Metrics collection with Prometheus
"""

__all__ = ["metrics"]
