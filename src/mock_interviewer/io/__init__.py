"""
IO module for interview interfaces.
"""

from mock_interviewer.io.text_interface import InterviewInterface, TextInterface

__all__ = ["InterviewInterface", "TextInterface"]
