"""Dance-Verse admin API package (`admin.app`)."""
