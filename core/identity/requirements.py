"""
Ringside Identity - Actor Requirement Messages
==============================================
"""

ACTOR_REQUIRED_MESSAGE = "Please enter your name before changing competition settings."
EMPTY_NAME_MESSAGE = "Name cannot be empty."
