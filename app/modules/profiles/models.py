# Supabase table: profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id)
- full_name: text (nullable)
- username: text (nullable)
- avatar_url: text (nullable) - public URL in the `avatars` bucket
- bio: text (nullable)
- university: text (nullable)
- has_password: boolean (default: false) - false for OAuth-only accounts
- updated_at: timestamp (nullable)

Storage bucket `avatars`: one object per user at `<user_id>/avatar.<ext>`,
overwritten on every upload.
"""

AVATAR_STEM = "avatar"
