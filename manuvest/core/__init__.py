"""ManuVest core: domain records, store, workflow rules and shared services."""
