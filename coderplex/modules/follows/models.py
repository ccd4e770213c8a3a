# Supabase table: follows
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

follows:
- id: uuid (primary key, default: gen_random_uuid())
- follower_id: uuid (not null, references profiles.user_id, fk follows_follower_id_fkey)
- following_id: uuid (not null, references profiles.user_id, fk follows_following_id_fkey)
- created_at: timestamp (default: now())
- unique (follower_id, following_id)

A row means follower_id follows following_id. Rows are written and removed
only by the follower. The row is the source of truth for "is following";
profiles.followers_count / following_count are adjusted by separate calls
after the edge write and are not transactional with it.
"""
