"""HTTP quote API for Wells."""
