"""
acl/models.py -- Domain types for resource-level access control.

ResourceType is a closed enumeration: a grant can only name a resource kind
listed here. Adding a new protected resource means adding a member, not
passing a free-form string.
"""

from enum import Enum


class ResourceType(str, Enum):
    PROJECT = "Project"
