# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - User registration (auth.users table)
# - Password and OAuth sign-in
# - JWT token generation and validation

"""
Supabase Auth provides:
- auth.sign_up() - Register new users (full_name and has_password go to user metadata)
- auth.sign_in_with_password() - Authenticate users
- auth.sign_in_with_oauth() - Build the provider redirect URL (Google)
- auth.get_user() - Get current user from JWT token
- auth.get_session() / auth.on_auth_state_change() - Session retrieval and change subscription
- auth.admin.sign_out(jwt, scope="local") - Revoke the caller's session on logout
- auth.admin.update_user_by_id() - Set a password (requires service role key)

The public profile of a user lives in the `profiles` table (see profiles/models.py),
keyed by the auth user id.
"""

# user_metadata keys written at sign-up
METADATA_FULL_NAME = "full_name"
METADATA_HAS_PASSWORD = "has_password"
