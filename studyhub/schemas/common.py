"""
Shared response shapes.
"""

from pydantic import BaseModel


class Message(BaseModel):
    """Generic acknowledgement"""
    message: str
