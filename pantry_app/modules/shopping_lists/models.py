# Supabase tables: lists, list_items, item_catalog
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

lists:
- list_id: uuid (primary key)
- group_id: uuid (foreign key to groups.group_id, not null)
- name: text (default: 'Shopping List')
- list_type: text (default: 'shopping')
- created_by_user: uuid (foreign key to users.user_id)
- created_at: timestamp (default: now())
- archived_at: timestamp (nullable)

list_items:
- list_item_id: uuid (primary key)
- list_id: uuid (foreign key to lists.list_id, not null)
- item_id: uuid (foreign key to item_catalog.item_id, nullable)
- custom_name: text (nullable) - set when item_id is null
- quantity: numeric (default: 1)
- unit: text (nullable)
- is_checked: boolean (default: false)
- added_by_user: uuid (nullable)
- created_at: timestamp (default: now())

item_catalog (shared, read-only for users):
- item_id: uuid (primary key)
- name: text (not null)
- brand: text (nullable)
- description: text (nullable)
- default_unit: text (nullable)
- barcode: text (nullable)
- category_id: uuid (foreign key to item_categories.category_id, nullable)
"""
