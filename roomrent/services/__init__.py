"""Access layers over the Supabase tables and the live views built on them."""
