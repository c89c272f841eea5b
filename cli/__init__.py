"""CLI package for the Reading Tracker"""
from .main import cli

__all__ = ['cli']
