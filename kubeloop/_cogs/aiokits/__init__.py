"""
Asyncio-related kits: the tasks' orchestration beyond the standard library.

These kits know nothing about the operator's domain: they only deal with
tasks, their guarding, waiting, and stopping.
"""
