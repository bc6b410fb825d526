"""
Project Management Module

Exports:
- ProjectManager: CRUD operations for projects and uploaded source files
"""

from .project_manager import ProjectManager

__all__ = [
    "ProjectManager",
]
