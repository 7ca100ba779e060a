"""PR status machine and domain event hooks."""
