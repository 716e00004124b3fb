# Supabase tables: groups, group_members
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

groups (a household):
- group_id: uuid (primary key)
- name: text
- created_by_user: uuid (foreign key to users.user_id, not null)
- created_at: timestamp (default: now())

group_members:
- group_id: uuid (foreign key to groups.group_id, not null)
- user_id: uuid (foreign key to users.user_id, not null)
- role: text (not null, default: 'member') - values: owner, member
- joined_at: timestamp (default: now())
- primary key (group_id, user_id)
"""
