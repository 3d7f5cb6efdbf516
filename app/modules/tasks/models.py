# Supabase table: tasks
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

tasks:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, not null) - publisher
- title: text (not null)
- description: text (not null)
- subject: text (not null)
- type: task_type enum (request, offer)
- price: numeric (default: 0)
- due_date: timestamp (nullable)
- status: task_status enum (open, in_progress, completed, closed; default: open)
- contact_info: text (nullable)
- file_url: text (nullable) - public URL in the `task_files` bucket
- file_name: text (nullable)
- created_at: timestamp (default: now())
"""

TASK_SELECT = "*, profiles:user_id(id, full_name, username, avatar_url)"
