"""
REST API module for RevLens.

Provides FastAPI endpoints for:
- Project management
- Source file upload/management
- Analysis task dispatch and status
"""
