"""Package and pallet state-transition engine for warehouse operations."""
