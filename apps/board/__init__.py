# apps/board/__init__.py

"""
Board - Kanban dashboard of Taskboard

Features:
- Drag-and-drop columns per project state
- WebSockets for live updates between open boards
- HTMX partial refresh after each change
"""
