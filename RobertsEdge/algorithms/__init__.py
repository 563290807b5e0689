"""
RobertsEdge/algorithms/__init__.py
"""
from .kernels import edge_magnitude, edge_magnitude_rows, narrow, roberts_block

__all__ = [
    'edge_magnitude',
    'edge_magnitude_rows',
    'narrow',
    'roberts_block',
]
