# Supabase tables: groups, group_members
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

groups:
- id: uuid (primary key)
- name: text (not null)
- description: text (nullable)
- image_url: text (nullable) - cover image in the `images` bucket
- created_by: uuid (foreign key to profiles.id) - creator, the only moderator
- is_private: boolean (default: false)
- created_at: timestamp (default: now())

group_members:
- group_id: uuid (foreign key to groups.id, not null)
- user_id: uuid (foreign key to profiles.id, not null)
- status: text (not null, default: 'pending') - values: pending, approved, rejected
- join_message: text (nullable) - message sent with a request to a private group
- role: text (not null, default: 'member')
- joined_at: timestamp (default: now())
- unique constraint on (group_id, user_id)

Rejected requests are deleted, so a 'rejected' row only exists when written by
something outside this service; it is treated as a request that may be re-sent.
"""

MEMBERSHIP_CONFLICT = "group_id,user_id"
REQUEST_SELECT = "*, profiles:user_id(id, full_name, username, avatar_url)"
