# Supabase tables: profiles, auth.users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

profiles:
- user_id: uuid (primary key, references auth.users.id)
- name: text (nullable until onboarding)
- role: text (nullable)
- bio: text (nullable)
- company: text (nullable)
- skills: text (nullable) - comma-separated, e.g. "Python, FastAPI, Postgres"
- github: text (nullable)
- linkedin: text (nullable)
- website: text (nullable)
- avatar_url: text (nullable) - object path inside the avatars bucket, not a URL
- is_student: boolean (default: false)
- is_employed: boolean (default: false)
- is_freelance: boolean (default: false)
- followers_count: integer (default: 0)
- following_count: integer (default: 0)
- onboarding_completed: boolean (default: false)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

A blank row is created on first sign-in; onboarding fills it in. Only the
owner writes to their row; it is removed only by account deletion.
followers_count / following_count are a best-effort cache of the follows
table and may drift from the real edge counts.
"""
