# apps/__init__.py

"""
Taskboard - Django applications

- core: accounts, members, projects, states and tasks; sign-in and profile
- board: kanban dashboard, drag and drop, WebSockets
- inquiry: inquiry form and chat webhook relay
"""

__version__ = '0.1.0'
