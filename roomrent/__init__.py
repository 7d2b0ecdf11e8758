"""RoomRent: room-rental marketplace service over Supabase."""
