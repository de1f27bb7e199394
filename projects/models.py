"""
projects/models.py -- Domain dataclass for projects.

Projects are the only resource type guarded by the ACL. The owner (user_id)
is recorded for reference; access decisions go through acl/ only.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Project:
    """A user-owned project. id is None before the record is written."""

    user_id: int
    name: str
    description: Optional[str] = None
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
