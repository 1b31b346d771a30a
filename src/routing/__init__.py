"""Call routing: transfer resolution and sequential ring groups."""
