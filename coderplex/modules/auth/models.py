# Supabase Auth
# Identities live in Supabase's auth.users table; this service keeps no auth tables of its own.

"""
Calls made against supabase.auth:
- sign_up(email, password, options.data.name) on registration
- sign_in_with_password() on login; the returned session's access_token is the bearer token
- get_user(jwt) to resolve a bearer token (cached in-process for 60 s)
- admin.sign_out(jwt) on logout; revokes refresh tokens, issued access JWTs remain valid until expiry
- admin.delete_user() on account deletion, through the service_role client only

user_metadata["name"] (or "full_name" from OAuth providers) seeds profiles.name
when the blank profile row is created on first sign-in.
"""
