"""Workflow actions and their dispatcher."""

from flowline.actions.registry import ACTION_HANDLERS, ActionType, execute_actions, get_handler

__all__ = ["ACTION_HANDLERS", "ActionType", "execute_actions", "get_handler"]
