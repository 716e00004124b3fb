# Supabase tables: pantries, pantry_locations, inventory_items
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

pantries:
- pantry_id: uuid (primary key)
- group_id: uuid (foreign key to groups.group_id, not null)
- name: text
- created_at: timestamp (default: now())

pantry_locations (a shelf, freezer, cupboard... inside a pantry):
- location_id: uuid (primary key)
- pantry_id: uuid (foreign key to pantries.pantry_id, not null)
- name: text
- notes: text (nullable)
- created_by_user: uuid (nullable)
- created_at: timestamp (default: now())

inventory_items:
- inventory_id: uuid (primary key)
- pantry_id: uuid (foreign key to pantries.pantry_id, not null)
- location_id: uuid (foreign key to pantry_locations.location_id, nullable)
- item_id: uuid (foreign key to item_catalog.item_id, nullable)
- custom_name: text (nullable) - set when item_id is null
- quantity: numeric (not null)
- unit: text (not null)
- expires_on: date (nullable)
- notes: text (nullable)
- created_by_user: uuid (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())
"""
