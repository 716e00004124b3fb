# Supabase table: users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

users:
- user_id: uuid (primary key, references auth.users.id)
- email: text (nullable) - synced from the auth claims on login
- display_name: text (nullable)
- created_at: timestamp (default: now())

An auth trigger may insert the row when the auth user is created, so the
application treats "insert failed" as "maybe someone else inserted it" and
reads the row back once before giving up.
"""
