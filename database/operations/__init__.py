"""
Database Operations Package

High-level database operations organized by purpose:
- user_ops: Account lifecycle (create/revive, soft delete, restore)
- password_reset_ops: Reset token issuance and redemption
- academic_ops: Colleges, departments and role profiles
"""

from .user_ops import (
    get_user_by_email,
    get_user_by_id,
    is_email_available,
    create_user,
    update_user,
    update_password_hash,
    soft_delete_user,
    restore_user,
    list_users,
)

from .password_reset_ops import (
    generate_reset_token,
    revoke_user_tokens,
    create_reset_token,
    get_reset_token,
    is_token_redeemable,
    mark_token_as_used,
    redeem_reset_token,
    delete_expired_tokens,
)

__all__ = [
    # Users
    'get_user_by_email',
    'get_user_by_id',
    'is_email_available',
    'create_user',
    'update_user',
    'update_password_hash',
    'soft_delete_user',
    'restore_user',
    'list_users',

    # Password reset
    'generate_reset_token',
    'revoke_user_tokens',
    'create_reset_token',
    'get_reset_token',
    'is_token_redeemable',
    'mark_token_as_used',
    'redeem_reset_token',
    'delete_expired_tokens',
]
