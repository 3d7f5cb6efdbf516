# Supabase tables: posts, post_likes, post_comments
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

posts:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, not null) - author
- group_id: uuid (foreign key to groups.id, nullable) - null for the main feed
- content: text (not null, may be empty when an attachment is present)
- image_url: text (nullable) - public URL in the `images` bucket
- file_url: text (nullable) - public URL in the `task_files` bucket (group posts)
- file_name: text (nullable)
- created_at: timestamp (default: now())

post_likes:
- post_id: uuid (foreign key to posts.id, not null)
- user_id: uuid (foreign key to profiles.id, not null)
- created_at: timestamp (default: now())
- unique constraint on (post_id, user_id)

post_comments:
- id: uuid (primary key)
- post_id: uuid (foreign key to posts.id, not null)
- user_id: uuid (foreign key to profiles.id, not null)
- content: text (nullable)
- image_url: text (nullable)
- created_at: timestamp (default: now())
"""

# Embedded author profile used by every post and comment query
AUTHOR_EMBED = "profiles:user_id(id, full_name, username, avatar_url)"
POST_SELECT = f"*, {AUTHOR_EMBED}"
COMMENT_SELECT = f"*, {AUTHOR_EMBED}"
