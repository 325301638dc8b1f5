"""Collaborator services used by workflow actions and the approval engine."""
