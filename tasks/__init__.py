"""
Celery tasks module
Import all tasks here so Celery can discover them
"""
from . import billing_tasks

__all__ = ['billing_tasks']
