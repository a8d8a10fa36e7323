"""
Stock Kernel

Shared foundation for the stock-control engines:
- Structured JSON logging with context propagation
- Typed exception hierarchy
- Clock and identifier abstractions
- Immutable inventory and scanning records
"""

__version__ = "0.1.0"
