from .base_engine import BaseEngine

__all__ = ['BaseEngine']
