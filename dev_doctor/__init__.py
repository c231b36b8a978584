"""
Developer environment doctor: turns a snapshot of local tools, packages, variables and services
into prioritized issues, suggestions and optional AI insights.
"""

__all__ = ["advisory", "cli", "config", "engine", "formatting", "inventory", "rules", "suggestions"]
__version__ = "0.1.0"
