"""
Utilities Package

Organized by purpose:
- auth: Password hashing and JWT issuance/verification
- email: Outbound email notifications
- errors: Exception taxonomy and error handling
- monitoring: Structured logging and correlation IDs
"""
