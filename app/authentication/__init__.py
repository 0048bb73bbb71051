"""
Authentication application.

Owns the platform user record. The chat core treats it as a black box and
only reaches it through the UserDirectory collaborator (existence checks and
name/email lookup); token issuance lives in the platform's auth service.

Key components:
    - User model: Email-based user with first/last name and platform role
    - UserManager: Email-based user creation
    - UserDirectory: UserExists / UserLookup collaborator for the chat core

Usage:
    from authentication.models import User
    from authentication.services import UserDirectory
"""
