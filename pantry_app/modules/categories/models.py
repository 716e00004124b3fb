# Supabase table: item_categories
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

item_categories:
- category_id: uuid (primary key)
- group_id: uuid (foreign key to groups.group_id, not null)
- name: text
- created_by_user: uuid (nullable)
- created_at: timestamp (default: now())
"""
