"""Town Portal desktop client.

Authenticated native-citizen portal and admin back office over a hosted
Supabase backend.
"""

__version__ = "1.0.0"
