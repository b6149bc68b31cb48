"""
Selection handoff output.
"""

from .handoff import JsonHandoffPublisher, build_handoff, handoff_path, write_handoff

__all__ = ["JsonHandoffPublisher", "build_handoff", "handoff_path", "write_handoff"]
