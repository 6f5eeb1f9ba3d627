# apps/core/__init__.py

"""
Core - main Taskboard application

- Models: Account, Member, Project, Status, Task
- Sign-in with password or Discord OAuth
- Member profile (mypage) and project/state management
"""
