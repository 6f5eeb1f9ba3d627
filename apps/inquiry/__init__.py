# apps/inquiry/__init__.py

"""
Inquiry - contact form of Taskboard

Stores each inquiry and relays it to a Discord channel through a webhook.
"""
